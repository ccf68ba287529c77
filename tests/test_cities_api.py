"""API tests for city management: global SUPER_ADMIN routes and owner-scoped routes."""

from app.models import City
from tests.support import ApiTestCase

CITY = {"name": "Lyon", "latitude": 45.76, "longitude": 4.84, "radius": 5000}


class TestSuperAdminCities(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        _, self.headers = self.super_admin()

    def test_create_and_list_with_owner_and_pois(self) -> None:
        admin_id = self.create_user("owner@example.com")
        resp = self.client.post(
            "/api/cities", json={**CITY, "adminId": admin_id}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 201)
        city_id = resp.json()["id"]
        self.assertEqual(resp.json()["adminId"], admin_id)
        self.create_poi(city_id)

        listing = self.client.get("/api/cities", headers=self.headers).json()
        self.assertEqual(len(listing), 1)
        self.assertEqual(listing[0]["admin"]["email"], "owner@example.com")
        self.assertEqual(len(listing[0]["pois"]), 1)

    def test_create_with_unknown_admin_is_400(self) -> None:
        resp = self.client.post("/api/cities", json={**CITY, "adminId": 999}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Administrateur introuvable"})

    def test_non_positive_radius_is_400(self) -> None:
        for radius in (0, -5):
            resp = self.client.post(
                "/api/cities", json={**CITY, "radius": radius}, headers=self.headers
            )
            self.assertEqual(resp.status_code, 400)
            self.assertIn("errors", resp.json())

    def test_get_missing_city_is_404(self) -> None:
        resp = self.client.get("/api/cities/42", headers=self.headers)
        self.assertEqual(resp.status_code, 404)
        self.assertIn("error", resp.json())

    def test_update_city(self) -> None:
        city_id = self.create_city()
        resp = self.client.put(
            f"/api/cities/{city_id}",
            json={**CITY, "name": "Lugdunum", "radius": 7000},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "Lugdunum")
        self.assertEqual(resp.json()["radius"], 7000)

    def test_assign_and_unassign(self) -> None:
        city_id = self.create_city()
        admin_id = self.create_user("owner@example.com")
        resp = self.client.put(
            f"/api/cities/{city_id}/assign", json={"adminId": admin_id}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["adminId"], admin_id)
        resp = self.client.delete(f"/api/cities/{city_id}/unassign", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["adminId"])

    def test_assign_to_unknown_admin_is_400(self) -> None:
        city_id = self.create_city()
        resp = self.client.put(
            f"/api/cities/{city_id}/assign", json={"adminId": 999}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)

    def test_delete_city_with_pois_is_409(self) -> None:
        city_id = self.create_city()
        self.create_poi(city_id)
        resp = self.client.delete(f"/api/cities/{city_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(self.client.get(f"/api/cities/{city_id}", headers=self.headers).status_code, 200)

    def test_delete_empty_city(self) -> None:
        city_id = self.create_city()
        resp = self.client.delete(f"/api/cities/{city_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(self.client.get(f"/api/cities/{city_id}", headers=self.headers).status_code, 404)


class TestAdminCities(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin_id, self.headers = self.admin()
        self.other_id = self.create_user("other@example.com")

    def test_global_routes_are_forbidden(self) -> None:
        city_id = self.create_city(admin_id=self.admin_id)
        calls = [
            self.client.get("/api/cities", headers=self.headers),
            self.client.get(f"/api/cities/{city_id}", headers=self.headers),
            self.client.post("/api/cities", json=CITY, headers=self.headers),
            self.client.put(f"/api/cities/{city_id}", json=CITY, headers=self.headers),
            self.client.delete(f"/api/cities/{city_id}", headers=self.headers),
        ]
        for resp in calls:
            self.assertEqual(resp.status_code, 403)
            self.assertEqual(resp.json(), {"error": "Insufficient permissions"})

    def test_lists_only_owned_cities(self) -> None:
        mine = self.create_city("Lyon", admin_id=self.admin_id)
        self.create_city("Paris", admin_id=self.other_id)
        self.create_city("Nice")
        resp = self.client.get("/api/cities/admin", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c["id"] for c in resp.json()], [mine])

    def test_empty_list_when_owning_nothing(self) -> None:
        resp = self.client.get("/api/cities/admin", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), [])

    def test_update_owned_city(self) -> None:
        city_id = self.create_city(admin_id=self.admin_id)
        resp = self.client.put(
            f"/api/cities/admin/{city_id}", json={**CITY, "name": "Lyon 2"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "Lyon 2")
        self.assertEqual(resp.json()["adminId"], self.admin_id)

    def test_update_foreign_city_is_403_and_unchanged(self) -> None:
        city_id = self.create_city("Paris", admin_id=self.other_id)
        resp = self.client.put(
            f"/api/cities/admin/{city_id}", json={**CITY, "name": "Hijacked"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 403)
        with self.Session() as db:
            self.assertEqual(db.get(City, city_id).name, "Paris")

    def test_update_missing_city_is_403(self) -> None:
        resp = self.client.put("/api/cities/admin/999", json=CITY, headers=self.headers)
        self.assertEqual(resp.status_code, 403)
