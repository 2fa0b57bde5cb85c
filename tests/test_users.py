"""
User management, placement and dashboard tests
"""
from bson import ObjectId


class TestCreateUser:

    def test_admin_creates_coordinator(self, client, admin, auth):
        response = client.post(
            "/api/user",
            json={
                "firstName": "Maria",
                "lastName": "Santos",
                "email": "maria@example.com",
                "password": "secret123",
                "role": "coordinator",
                "program": "bsba",
            },
            headers=auth(admin),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "coordinator"
        assert body["userName"] == "maria@example.com"
        assert "password" not in body

    def test_coordinator_creates_student_in_own_program(self, client, coordinator, auth):
        response = client.post(
            "/api/user",
            json={"firstName": "Ana", "lastName": "Reyes", "email": "ana@example.com", "password": "secret123"},
            headers=auth(coordinator),
        )

        assert response.status_code == 201
        assert response.json()["program"] == "bsit"

    def test_coordinator_cannot_create_other_program(self, client, coordinator, auth):
        response = client.post(
            "/api/user",
            json={
                "firstName": "Ana", "lastName": "Reyes", "email": "ana@example.com",
                "password": "secret123", "program": "bsba",
            },
            headers=auth(coordinator),
        )

        assert response.status_code == 403

    def test_student_cannot_create_users(self, client, student, auth):
        response = client.post(
            "/api/user",
            json={"firstName": "A", "lastName": "B", "email": "ab@example.com", "password": "secret123"},
            headers=auth(student),
        )

        assert response.status_code == 403


class TestListAndSearch:

    def test_coordinator_sees_admins_and_own_program(self, client, admin, coordinator, student, make_user, auth):
        other = make_user("student", program="bsba")
        response = client.get("/api/user", headers=auth(coordinator))

        ids = {u["_id"] for u in response.json()}
        assert str(admin["_id"]) in ids
        assert str(student["_id"]) in ids
        assert str(other["_id"]) not in ids

    def test_filter_by_role(self, client, admin, student, auth):
        response = client.get("/api/user", params={"role": "student"}, headers=auth(admin))

        assert [u["_id"] for u in response.json()] == [str(student["_id"])]

    def test_search_is_case_insensitive(self, client, admin, make_user, auth):
        make_user("student", firstName="Katrina")
        response = client.post("/api/user/search", json={"firstName": "kat"}, headers=auth(admin))

        assert response.status_code == 200
        assert response.json()[0]["firstName"] == "Katrina"

    def test_search_no_match(self, client, admin, auth):
        response = client.post("/api/user/search", json={"firstName": "zzz"}, headers=auth(admin))

        assert response.status_code == 404
        assert response.json()["message"] == "No users found"

    def test_search_rejects_operators(self, client, admin, auth):
        response = client.post("/api/user/search", json={"$where": "1"}, headers=auth(admin))

        assert response.status_code == 400

    def test_get_user_invalid_id(self, client, admin, auth):
        response = client.get("/api/user/not-an-id", headers=auth(admin))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid id"

    def test_get_user_not_found(self, client, admin, auth):
        response = client.get(f"/api/user/{ObjectId()}", headers=auth(admin))

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestUpdateUser:

    def test_user_updates_own_name(self, client, student, auth):
        response = client.patch(
            "/api/user", json={"_id": str(student["_id"]), "firstName": "Renamed"}, headers=auth(student)
        )

        assert response.status_code == 200
        assert response.json()["firstName"] == "Renamed"

    def test_student_cannot_update_someone_else(self, client, student, make_user, auth):
        other = make_user("student")
        response = client.patch(
            "/api/user", json={"_id": str(other["_id"]), "firstName": "Hacked"}, headers=auth(student)
        )

        assert response.status_code == 403

    def test_coordinator_cannot_touch_other_program(self, client, coordinator, make_user, auth):
        other = make_user("student", program="bsba")
        response = client.patch(
            "/api/user", json={"_id": str(other["_id"]), "firstName": "X"}, headers=auth(coordinator)
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You can only manage students of your own program"

    def test_only_admin_changes_roles(self, client, student, auth):
        response = client.patch(
            "/api/user", json={"_id": str(student["_id"]), "role": "admin"}, headers=auth(student)
        )

        assert response.status_code == 403

    def test_username_change_is_recorded(self, client, student, auth, mongo):
        client.patch("/api/user", json={"_id": str(student["_id"]), "userName": "fresh"}, headers=auth(student))

        stored = mongo["users"].find_one({"_id": student["_id"]})
        assert stored["userName"] == "fresh"
        assert stored["lastUsernameChangeDate"] is not None


class TestArchiveAndDelete:

    def test_archive_frees_email(self, client, admin, student, auth, mongo):
        response = client.delete(f"/api/user/{student['_id']}", headers=auth(admin))

        assert response.status_code == 200
        stored = mongo["users"].find_one({"_id": student["_id"]})
        assert stored["isArchived"] is True
        assert stored["email"].startswith(student["email"] + ".archived.")

        # archived users are hidden and their tokens stop working
        listed = client.get("/api/user", headers=auth(admin)).json()
        assert str(student["_id"]) not in {u["_id"] for u in listed}
        assert client.get("/api/user", headers=auth(student)).status_code == 401

    def test_permanent_delete_cascades(self, client, admin, student, auth, mongo):
        mongo["documents"].insert_one({"student": student["_id"], "documentName": "Resume"})
        mongo["dailytimerecords"].insert_one({"user": student["_id"]})

        response = client.delete(f"/api/user/{student['_id']}/permanent", headers=auth(admin))

        assert response.status_code == 200
        assert mongo["users"].count_documents({"_id": student["_id"]}) == 0
        assert mongo["documents"].count_documents({"student": student["_id"]}) == 0
        assert mongo["dailytimerecords"].count_documents({"user": student["_id"]}) == 0


class TestPlacement:

    def _assign(self, client, headers, student, company, coordinator, **extra):
        body = {
            "userId": str(student["_id"]),
            "companyId": str(company["_id"]),
            "coordinatorId": str(coordinator["_id"]),
            **extra,
        }
        return client.post("/api/user/assign-company", json=body, headers=headers)

    def test_assign_company(self, client, coordinator, student, company, auth):
        response = self._assign(client, auth(coordinator), student, company, coordinator)

        assert response.status_code == 200
        metadata = response.json()["user"]["metadata"]
        assert metadata["company"]["name"] == "Acme Corp"
        assert metadata["coordinator"]["_id"] == str(coordinator["_id"])
        assert metadata["status"] == "scheduled"

    def test_assign_twice_fails(self, client, coordinator, student, company, auth):
        self._assign(client, auth(coordinator), student, company, coordinator)
        response = self._assign(client, auth(coordinator), student, company, coordinator)

        assert response.status_code == 400
        assert response.json()["message"] == "Student is already assigned to a company"

    def test_assign_requires_ids(self, client, coordinator, auth):
        response = client.post("/api/user/assign-company", json={}, headers=auth(coordinator))

        assert response.status_code == 400
        assert response.json()["message"] == "userId, companyId and coordinatorId are required"

    def test_deployment_status_and_unassign(self, client, coordinator, placed_student, auth):
        headers = auth(coordinator)
        response = client.patch(
            "/api/user/deployment-status",
            json={"userId": str(placed_student["_id"]), "status": "completed"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["user"]["metadata"]["status"] == "completed"

        response = client.post(
            "/api/user/unassign-company", json={"userId": str(placed_student["_id"])}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["user"]["metadata"] == {"status": "completed"}

    def test_invalid_deployment_status(self, client, coordinator, placed_student, auth):
        response = client.patch(
            "/api/user/deployment-status",
            json={"userId": str(placed_student["_id"]), "status": "fired"},
            headers=auth(coordinator),
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid status")

    def test_null_metadata(self, client, admin, coordinator, student, auth, mongo):
        mongo["users"].update_one({"_id": student["_id"]}, {"$set": {"metadata": None}})

        assert client.get("/api/user", headers=auth(admin)).status_code == 200
        response = client.patch(
            "/api/user/deployment-status",
            json={"userId": str(student["_id"]), "status": "deployed"},
            headers=auth(coordinator),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Student is not assigned to a company"

    def test_location_and_company_students(self, client, coordinator, placed_student, company, auth):
        response = client.post("/api/user/location", json={"lat": 15.0, "lng": 120.0}, headers=auth(placed_student))
        assert response.status_code == 200

        response = client.get(f"/api/company/{company['_id']}/students", headers=auth(coordinator))
        students = response.json()
        assert len(students) == 1
        assert students[0]["latestLocation"]["lat"] == 15.0


class TestDashboard:

    def test_admin_dashboard(self, client, admin, coordinator, student, company, auth):
        response = client.get("/api/user/dashboard", headers=auth(admin))

        assert response.json() == {
            "userRole": "admin",
            "totalStudents": 1,
            "bsitStudents": 1,
            "bsbaStudents": 0,
            "totalCoordinators": 1,
            "totalCompanies": 1,
        }

    def test_student_dashboard(self, client, student, auth, mongo):
        mongo["tasks"].insert_one({"title": "Report", "assignedTo": [student["_id"]]})
        mongo["announcements"].insert_one({"title": "Hi", "targetProgram": "all"})
        mongo["announcements"].insert_one({"title": "BSBA only", "targetProgram": "bsba"})

        body = client.get("/api/user/dashboard", headers=auth(student)).json()

        assert body["totalTasks"] == 1
        assert body["totalAnnouncements"] == 1
        assert body["totalDocuments"] == 0

    def test_coordinator_dashboard(self, client, coordinator, placed_student, auth):
        body = client.get("/api/user/dashboard", headers=auth(coordinator)).json()

        assert body["totalStudentsHandled"] == 1
        assert body["bsitStudents"] == 1
        assert body["companiesWithStudents"] == 1
