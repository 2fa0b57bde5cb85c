"""
Company endpoint tests
"""
from tests.conftest import SAFE_ZONE

COMPANY = {
    "name": "Globex",
    "address": "2 Side St",
    "contactPerson": "Hank Scorpio",
    "contactEmail": "Hank@globex.example.com",
    "contactPhone": "09171111111",
}


class TestCompanies:

    def test_create_company(self, client, admin, auth):
        response = client.post("/api/company", json=COMPANY, headers=auth(admin))

        assert response.status_code == 201
        body = response.json()
        assert body["contactEmail"] == "hank@globex.example.com"
        assert "safeZone" not in body

    def test_create_with_open_ring_closes_it(self, client, admin, auth):
        ring = SAFE_ZONE["coordinates"][0][:-1]
        response = client.post(
            "/api/company", json={**COMPANY, "safeZone": {"coordinates": [ring]}}, headers=auth(admin)
        )

        assert response.status_code == 201
        safe_zone = response.json()["safeZone"]
        assert safe_zone["type"] == "Polygon"
        assert safe_zone["coordinates"][0][0] == safe_zone["coordinates"][0][-1]

    def test_degenerate_safe_zone_rejected(self, client, admin, auth):
        response = client.post(
            "/api/company",
            json={**COMPANY, "safeZone": {"type": "Polygon", "coordinates": [[[1, 1], [2, 2], [1, 1]]]}},
            headers=auth(admin),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Safe zone polygon needs at least 3 distinct points"

    def test_duplicate_contact_person(self, client, admin, company, auth):
        response = client.post(
            "/api/company", json={**COMPANY, "contactPerson": company["contactPerson"]}, headers=auth(admin)
        )

        assert response.status_code == 400

    def test_students_cannot_create(self, client, student, auth):
        assert client.post("/api/company", json=COMPANY, headers=auth(student)).status_code == 403

    def test_get_company_is_public(self, client, company):
        response = client.get(f"/api/company/{company['_id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Corp"

    def test_update_removes_safe_zone_with_null(self, client, admin, company, auth, mongo):
        response = client.patch(
            "/api/company",
            json={"_id": str(company["_id"]), "name": "Acme Inc", "safeZone": None},
            headers=auth(admin),
        )

        assert response.status_code == 200
        stored = mongo["companies"].find_one({"_id": company["_id"]})
        assert stored["name"] == "Acme Inc"
        assert "safeZone" not in stored

    def test_search(self, client, student, company, auth):
        response = client.post("/api/company/search", json={"name": "acme"}, headers=auth(student))

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_delete_releases_students(self, client, admin, company, placed_student, auth, mongo):
        response = client.delete(f"/api/company/{company['_id']}", headers=auth(admin))

        assert response.status_code == 200
        assert mongo["companies"].count_documents({}) == 0
        metadata = mongo["users"].find_one({"_id": placed_student["_id"]})["metadata"]
        assert "company" not in metadata
        assert metadata["status"] == "deployed"
