"""
Announcement and program requirement tests
"""
import pytest


@pytest.fixture
def announcement(client, coordinator, auth):
    response = client.post(
        "/api/announcement", json={"title": "Orientation", "content": "Monday 9AM"}, headers=auth(coordinator)
    )
    assert response.status_code == 201
    return response.json()


class TestAnnouncements:

    def test_coordinator_defaults_to_own_program(self, announcement):
        assert announcement["targetProgram"] == "bsit"

    def test_admin_defaults_to_all(self, client, admin, auth):
        response = client.post("/api/announcement", json={"title": "Hi", "content": "All"}, headers=auth(admin))

        assert response.json()["targetProgram"] == "all"

    def test_students_of_target_program_are_emailed(self, client, coordinator, student, make_user, auth, sent_emails):
        make_user("student", program="bsba")
        client.post("/api/announcement", json={"title": "T", "content": "C"}, headers=auth(coordinator))

        assert sent_emails.await_args.kwargs["bcc"] == [student["email"]]

    def test_title_required(self, client, coordinator, auth):
        response = client.post("/api/announcement", json={"title": " ", "content": "C"}, headers=auth(coordinator))

        assert response.status_code == 400
        assert response.json()["message"] == "title is required"

    def test_students_cannot_post(self, client, student, auth):
        response = client.post("/api/announcement", json={"title": "T", "content": "C"}, headers=auth(student))

        assert response.status_code == 403

    def test_program_filtering(self, client, announcement, student, make_user, auth):
        bsba_student = make_user("student", program="bsba")

        assert len(client.get("/api/announcement", headers=auth(student)).json()) == 1
        assert client.get("/api/announcement", headers=auth(bsba_student)).json() == []

    def test_get_populates_author(self, client, announcement, student, coordinator, auth):
        body = client.get(f"/api/announcement/{announcement['_id']}", headers=auth(student)).json()

        assert body["createdBy"]["_id"] == str(coordinator["_id"])

    def test_only_author_edits(self, client, announcement, coordinator, make_user, auth):
        other = make_user("coordinator")
        denied = client.patch(f"/api/announcement/{announcement['_id']}", json={"title": "X"}, headers=auth(other))
        allowed = client.patch(
            f"/api/announcement/{announcement['_id']}", json={"title": "Updated"}, headers=auth(coordinator)
        )

        assert denied.status_code == 403
        assert allowed.json()["title"] == "Updated"

    def test_delete_and_search(self, client, announcement, admin, auth):
        assert client.post("/api/announcement/search", json={"title": "orient"}, headers=auth(admin)).status_code == 200

        client.delete(f"/api/announcement/{announcement['_id']}", headers=auth(admin))

        assert client.post("/api/announcement/search", json={"title": "orient"}, headers=auth(admin)).status_code == 404


class TestRequirements:

    def test_crud(self, client, coordinator, student, auth):
        created = client.post(
            "/api/requirements", json={"name": "Resume", "program": "bsit"}, headers=auth(coordinator)
        )
        assert created.status_code == 201
        requirement_id = created.json()["_id"]

        listed = client.get("/api/requirements", params={"program": "bsit"}, headers=auth(student)).json()
        assert [r["name"] for r in listed] == ["Resume"]
        assert client.get("/api/requirements", params={"program": "bsba"}, headers=auth(student)).json() == []

        updated = client.patch(
            "/api/requirements", json={"_id": requirement_id, "name": "Updated Resume"}, headers=auth(coordinator)
        )
        assert updated.json()["name"] == "Updated Resume"

        assert client.delete(f"/api/requirements/{requirement_id}", headers=auth(coordinator)).status_code == 200
        assert client.get(f"/api/requirements/{requirement_id}", headers=auth(student)).status_code == 404

    def test_invalid_program(self, client, coordinator, auth):
        response = client.post("/api/requirements", json={"name": "Resume", "program": "bsxx"}, headers=auth(coordinator))

        assert response.status_code == 400

    def test_students_cannot_create(self, client, student, auth):
        response = client.post("/api/requirements", json={"name": "Resume", "program": "bsit"}, headers=auth(student))

        assert response.status_code == 403
