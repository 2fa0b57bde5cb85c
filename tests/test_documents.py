"""
Document upload and review tests
"""
import pytest

PDF = ("resume.pdf", b"%PDF-1.4 test", "application/pdf")


def upload(client, headers, name="Resume", files=(PDF,), **form):
    return client.post(
        "/api/document",
        data={"documentName": name, **form},
        files=[("files", f) for f in files],
        headers=headers,
    )


@pytest.fixture
def document(client, student, auth):
    return upload(client, auth(student)).json()


class TestUpload:

    def test_student_uploads_document(self, client, student, auth):
        response = upload(client, auth(student))

        assert response.status_code == 201
        body = response.json()
        assert body["student"] == str(student["_id"])
        assert body["status"] == "pending"
        assert body["documents"] == ["https://files.test/ojt-assets/documents/resume.pdf"]

    def test_coordinator_uploads_for_student(self, client, coordinator, student, auth):
        response = upload(client, auth(coordinator), student=str(student["_id"]))

        assert response.json()["student"] == str(student["_id"])

    def test_rejects_unsupported_type(self, client, student, auth):
        response = upload(client, auth(student), files=[("run.exe", b"MZ", "application/x-msdownload")])

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid file type")

    def test_rejects_oversized_file(self, client, student, auth):
        big = ("big.pdf", b"0" * (5 * 1024 * 1024 + 1), "application/pdf")
        response = upload(client, auth(student), files=[big])

        assert response.status_code == 413

    def test_add_and_remove_files(self, client, student, document, auth, deleted_files):
        headers = auth(student)
        response = client.post(
            f"/api/document/add-files/{document['_id']}",
            files=[("files", ("id.png", b"\x89PNG", "image/png"))],
            headers=headers,
        )
        assert len(response.json()["documents"]) == 2

        response = client.post(
            f"/api/document/remove-files/{document['_id']}",
            json={"documents": ["https://files.test/ojt-assets/documents/resume.pdf"]},
            headers=headers,
        )
        assert response.json()["documents"] == ["https://files.test/ojt-assets/documents/id.png"]
        deleted_files.assert_awaited_once_with("https://files.test/ojt-assets/documents/resume.pdf")


class TestAccess:

    def test_student_sees_only_own(self, client, student, make_user, document, auth):
        other = make_user("student")
        assert client.get("/api/document", headers=auth(other)).json() == []
        assert client.get(f"/api/document/{document['_id']}", headers=auth(other)).status_code == 403

    def test_coordinator_sees_program_documents(self, client, coordinator, document, make_user, auth):
        other_coordinator = make_user("coordinator", program="bsba")

        assert len(client.get("/api/document", headers=auth(coordinator)).json()) == 1
        assert client.get("/api/document", headers=auth(other_coordinator)).json() == []

    def test_student_cannot_change_status(self, client, student, document, auth):
        response = client.patch(
            "/api/document", json={"_id": document["_id"], "status": "approved"}, headers=auth(student)
        )

        assert response.status_code == 403

    def test_coordinator_cannot_set_status_across_programs(self, client, make_user, document, auth, mongo):
        other_coordinator = make_user("coordinator", program="bsba")
        response = client.patch(
            "/api/document", json={"_id": document["_id"], "status": "approved"}, headers=auth(other_coordinator)
        )

        assert response.status_code == 403
        assert mongo["documents"].find_one({})["status"] == "pending"

    def test_status_change_emails_student(self, client, coordinator, student, document, auth, sent_emails):
        response = client.patch(
            "/api/document", json={"_id": document["_id"], "status": "rejected"}, headers=auth(coordinator)
        )

        assert response.json()["status"] == "rejected"
        assert sent_emails.await_args[0][0] == student["email"]

    def test_search_by_student_name(self, client, coordinator, student, document, auth):
        response = client.post(
            "/api/document/search", json={"query": student["firstName"].lower()}, headers=auth(coordinator)
        )

        assert response.status_code == 200
        assert response.json()[0]["_id"] == document["_id"]


class TestReview:

    def test_approve_emails_student(self, client, coordinator, student, document, auth, sent_emails):
        response = client.patch(f"/api/document/approve/{document['_id']}", headers=auth(coordinator))

        assert response.status_code == 200
        reviewed = response.json()["document"]
        assert reviewed["status"] == "approved"
        assert reviewed["remarks"] == "Document approved"
        assert sent_emails.await_args[0][0] == student["email"]

    def test_approve_twice(self, client, coordinator, document, auth):
        client.patch(f"/api/document/approve/{document['_id']}", headers=auth(coordinator))
        response = client.patch(f"/api/document/approve/{document['_id']}", headers=auth(coordinator))

        assert response.status_code == 400

    def test_disapprove_requires_remarks(self, client, coordinator, document, auth):
        response = client.patch(f"/api/document/disapprove/{document['_id']}", json={}, headers=auth(coordinator))

        assert response.status_code == 400
        assert response.json()["message"] == "Remarks are required when disapproving a document"

    def test_disapprove(self, client, coordinator, document, auth):
        response = client.patch(
            f"/api/document/disapprove/{document['_id']}",
            json={"remarks": "Blurry scan"},
            headers=auth(coordinator),
        )

        assert response.json()["document"]["status"] == "rejected"

    def test_only_coordinators_review(self, client, admin, document, auth):
        response = client.patch(f"/api/document/approve/{document['_id']}", headers=auth(admin))

        assert response.status_code == 403

    def test_review_shows_in_student_notifications(self, client, coordinator, student, document, auth):
        client.patch(
            f"/api/document/disapprove/{document['_id']}", json={"remarks": "Blurry"}, headers=auth(coordinator)
        )
        feed = client.get("/api/user/notifications", headers=auth(student)).json()

        assert feed[0]["type"] == "document"
        assert feed[0]["message"] == 'Your document "Resume" was rejected: Blurry'


class TestArchiveDocument:

    def test_archive_hides_document(self, client, student, document, auth):
        response = client.delete(f"/api/document/{document['_id']}", headers=auth(student))

        assert response.json()["document"]["isArchived"] is True
        assert client.get("/api/document", headers=auth(student)).json() == []
