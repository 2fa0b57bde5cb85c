"""
Task and submission tests
"""
import pytest

REPORT = ("report.pdf", b"%PDF-1.4 weekly", "application/pdf")


@pytest.fixture
def task(client, coordinator, student, auth):
    response = client.post(
        "/api/task",
        data={
            "title": "Weekly report",
            "description": "Summarize the week",
            "dueDate": "2026-10-30T17:00:00",
            "assignedTo[]": [str(student["_id"])],
        },
        headers=auth(coordinator),
    )
    assert response.status_code == 201
    return response.json()


class TestCreateTask:

    def test_create_task(self, task, coordinator, student):
        assert task["createdBy"] == str(coordinator["_id"])
        assert task["assignedTo"] == [str(student["_id"])]
        assert task["status"] == "pending"
        assert task["submissionProofUrl"] == []

    def test_plain_assigned_to_field(self, client, coordinator, student, auth):
        response = client.post(
            "/api/task",
            data={"title": "T", "description": "D", "assignedTo": str(student["_id"])},
            headers=auth(coordinator),
        )

        assert response.json()["assignedTo"] == [str(student["_id"])]

    def test_title_required(self, client, coordinator, auth):
        response = client.post("/api/task", data={"description": "D"}, headers=auth(coordinator))

        assert response.status_code == 400
        assert response.json()["message"] == "Title and description are required"

    def test_students_cannot_create(self, client, student, auth):
        response = client.post("/api/task", data={"title": "T", "description": "D"}, headers=auth(student))

        assert response.status_code == 403


class TestReadTasks:

    def test_student_sees_assigned_tasks(self, client, student, make_user, task, auth):
        other = make_user("student")

        assert [t["_id"] for t in client.get("/api/task", headers=auth(student)).json()] == [task["_id"]]
        assert client.get("/api/task", headers=auth(other)).json() == []

    def test_get_populates_users(self, client, student, task, auth):
        body = client.get(f"/api/task/{task['_id']}", headers=auth(student)).json()

        assert body["createdBy"]["role"] == "coordinator"
        assert body["assignedTo"][0]["_id"] == str(student["_id"])

    def test_tasks_for_student(self, client, coordinator, student, task, auth):
        response = client.get(f"/api/task/student/{student['_id']}", headers=auth(coordinator))

        assert len(response.json()) == 1

    def test_search(self, client, coordinator, task, auth):
        assert client.post("/api/task/search", json={"title": "weekly"}, headers=auth(coordinator)).status_code == 200
        assert client.post("/api/task/search", json={"title": "monthly"}, headers=auth(coordinator)).status_code == 404

    def test_new_task_notification(self, client, student, task, auth):
        feed = client.get("/api/user/notifications", headers=auth(student)).json()

        assert feed[0]["type"] == "task"
        assert feed[0]["message"] == "Weekly report"


class TestSubmissions:

    def test_student_submission(self, client, student, task, auth):
        response = client.post(
            f"/api/task/add-files/{task['_id']}", files=[("files", REPORT)], headers=auth(student)
        )

        assert response.status_code == 200
        submissions = response.json()["submissions"]
        assert len(submissions) == 1
        assert submissions[0]["student"]["_id"] == str(student["_id"])
        assert submissions[0]["files"] == ["https://files.test/ojt-assets/task-documents/report.pdf"]

    def test_unassigned_student_cannot_submit(self, client, make_user, task, auth):
        other = make_user("student")
        response = client.post(f"/api/task/add-files/{task['_id']}", files=[("files", REPORT)], headers=auth(other))

        assert response.status_code == 403

    def test_coordinator_attaches_files(self, client, coordinator, task, auth):
        response = client.post(
            f"/api/task/add-files/{task['_id']}", files=[("files", REPORT)], headers=auth(coordinator)
        )

        assert response.json()["submissionProofUrl"] == ["https://files.test/ojt-assets/task-documents/report.pdf"]

        response = client.post(
            f"/api/task/remove-files/{task['_id']}",
            json={"files": ["https://files.test/ojt-assets/task-documents/report.pdf"]},
            headers=auth(coordinator),
        )
        assert response.json()["submissionProofUrl"] == []

    def test_add_files_requires_files(self, client, student, task, auth):
        response = client.post(f"/api/task/add-files/{task['_id']}", headers=auth(student))

        assert response.status_code == 400


class TestModifyTask:

    def test_creator_updates(self, client, coordinator, task, auth):
        response = client.patch(
            "/api/task", json={"_id": task["_id"], "status": "completed"}, headers=auth(coordinator)
        )

        assert response.json()["status"] == "completed"

    def test_other_coordinator_cannot_update(self, client, make_user, task, auth):
        other = make_user("coordinator")
        response = client.patch("/api/task", json={"_id": task["_id"], "title": "X"}, headers=auth(other))

        assert response.status_code == 403

    def test_delete(self, client, admin, task, auth, mongo):
        response = client.delete(f"/api/task/{task['_id']}", headers=auth(admin))

        assert response.status_code == 200
        assert mongo["tasks"].count_documents({}) == 0
