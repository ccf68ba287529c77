"""API tests for POIs: SUPER_ADMIN routes, owner-scoped routes and file uploads."""

from pathlib import Path

from app.core.config import settings
from app.models import POI
from tests.support import ApiTestCase

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def poi_form(city_id: int, **overrides) -> dict[str, str]:
    form = {
        "name": "Fourvière",
        "description": "Basilique",
        "latitude": "45.762",
        "longitude": "4.822",
        "cityId": str(city_id),
    }
    form.update(overrides)
    return form


class TestSuperAdminPois(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        _, self.headers = self.super_admin()
        self.city_id = self.create_city()

    def test_create_with_urls(self) -> None:
        resp = self.client.post(
            "/api/pois",
            data=poi_form(self.city_id, iconUrl="https://cdn.example.com/i.png"),
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["cityId"], self.city_id)
        self.assertEqual(body["iconUrl"], "https://cdn.example.com/i.png")
        self.assertEqual(body["modelUrl"], "")
        self.assertEqual(body["city"]["name"], "Lyon")

    def test_create_with_uploaded_files(self) -> None:
        resp = self.client.post(
            "/api/pois",
            data=poi_form(self.city_id, iconUrl="https://ignored.example.com/i.png"),
            files={
                "iconFile": ("icon.png", PNG_BYTES, "image/png"),
                "modelFile": ("scene.glb", b"glTF", "model/gltf-binary"),
            },
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["iconUrl"].startswith("http://testserver/uploads/icons/"))
        self.assertTrue(body["modelUrl"].startswith("http://testserver/uploads/models/"))
        self.assertTrue(body["modelUrl"].endswith(".glb"))

    def test_rejects_bad_icon_type(self) -> None:
        resp = self.client.post(
            "/api/pois",
            data=poi_form(self.city_id),
            files={"iconFile": ("icon.gif", b"GIF89a", "image/gif")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

    def test_unknown_city_is_400(self) -> None:
        resp = self.client.post("/api/pois", data=poi_form(999), headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "La ville spécifiée n'existe pas"})

    def test_list_by_city(self) -> None:
        self.create_poi(self.city_id)
        other = self.create_city("Paris")
        self.create_poi(other, name="Louvre")
        resp = self.client.get(f"/api/pois/city/{self.city_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["name"] for p in resp.json()], ["Fourvière"])
        self.assertEqual(len(self.client.get("/api/pois", headers=self.headers).json()), 2)

    def test_list_by_city_empty_and_missing(self) -> None:
        empty = self.create_city("Nice")
        self.assertEqual(self.client.get(f"/api/pois/city/{empty}", headers=self.headers).json(), [])
        self.assertEqual(self.client.get("/api/pois/city/999", headers=self.headers).status_code, 404)

    def test_update_keeps_city_and_rejects_city_change(self) -> None:
        poi_id = self.create_poi(self.city_id)
        resp = self.client.put(
            f"/api/pois/{poi_id}", json={"name": "Basilique"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "Basilique")
        self.assertEqual(resp.json()["description"], "Basilique")
        other = self.create_city("Paris")
        resp = self.client.put(f"/api/pois/{poi_id}", json={"cityId": other}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_delete_removes_stored_files(self) -> None:
        created = self.client.post(
            "/api/pois",
            data=poi_form(self.city_id),
            files={"iconFile": ("icon.png", PNG_BYTES, "image/png")},
            headers=self.headers,
        ).json()
        stored = Path(settings.UPLOAD_DIR) / "icons" / created["iconUrl"].rsplit("/", 1)[-1]
        self.assertTrue(stored.exists())
        resp = self.client.delete(f"/api/pois/{created['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(stored.exists())
        self.assertEqual(self.client.get(f"/api/pois/{created['id']}", headers=self.headers).status_code, 404)


class TestOwnedPois(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin_id, self.headers = self.admin()
        self.other_id = self.create_user("other@example.com")
        self.mine = self.create_city("Lyon", admin_id=self.admin_id)
        self.theirs = self.create_city("Paris", admin_id=self.other_id)

    def test_global_routes_are_forbidden(self) -> None:
        poi_id = self.create_poi(self.mine)
        self.assertEqual(self.client.get("/api/pois", headers=self.headers).status_code, 403)
        self.assertEqual(self.client.get(f"/api/pois/{poi_id}", headers=self.headers).status_code, 403)
        self.assertEqual(
            self.client.post("/api/pois", data=poi_form(self.mine), headers=self.headers).status_code,
            403,
        )

    def test_lists_only_pois_of_owned_cities(self) -> None:
        self.create_poi(self.mine, name="Fourvière")
        self.create_poi(self.theirs, name="Louvre")
        resp = self.client.get("/api/pois/admin", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["name"] for p in resp.json()], ["Fourvière"])

    def test_create_in_owned_city(self) -> None:
        resp = self.client.post("/api/pois/admin", data=poi_form(self.mine), headers=self.headers)
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["cityId"], self.mine)

    def test_create_in_foreign_city_is_403(self) -> None:
        resp = self.client.post("/api/pois/admin", data=poi_form(self.theirs), headers=self.headers)
        self.assertEqual(resp.status_code, 403)
        with self.Session() as db:
            self.assertEqual(db.query(POI).count(), 0)

    def test_update_owned_and_foreign(self) -> None:
        mine = self.create_poi(self.mine)
        theirs = self.create_poi(self.theirs, name="Louvre")
        ok = self.client.put(f"/api/pois/admin/{mine}", json={"latitude": 45.7}, headers=self.headers)
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json()["latitude"], 45.7)
        denied = self.client.put(
            f"/api/pois/admin/{theirs}", json={"name": "Mine now"}, headers=self.headers
        )
        self.assertEqual(denied.status_code, 403)
        with self.Session() as db:
            self.assertEqual(db.get(POI, theirs).name, "Louvre")

    def test_delete_owned_and_foreign(self) -> None:
        mine = self.create_poi(self.mine)
        theirs = self.create_poi(self.theirs, name="Louvre")
        self.assertEqual(
            self.client.delete(f"/api/pois/admin/{theirs}", headers=self.headers).status_code, 403
        )
        self.assertEqual(
            self.client.delete(f"/api/pois/admin/{mine}", headers=self.headers).status_code, 204
        )
        with self.Session() as db:
            self.assertEqual([p.id for p in db.query(POI).all()], [theirs])


class TestPoiFileCleanup(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin_id, self.headers = self.admin()
        self.city_id = self.create_city(admin_id=self.admin_id)

    def _create_with_icon(self) -> dict:
        resp = self.client.post(
            "/api/pois/admin",
            data=poi_form(self.city_id),
            files={"iconFile": ("icon.png", PNG_BYTES, "image/png")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201)
        return resp.json()

    def _icon_path(self, poi: dict) -> Path:
        return Path(settings.UPLOAD_DIR) / "icons" / poi["iconUrl"].rsplit("/", 1)[-1]

    def test_deleting_poi_never_touches_files_outside_upload_dir(self) -> None:
        victim = Path(settings.UPLOAD_DIR).parent / f"victim-{id(self)}.env"
        victim.write_text("SECRET=1")
        self.addCleanup(victim.unlink, missing_ok=True)
        for url in (f"/uploads/../x/{victim.name}", f"/uploads/../{victim.name}"):
            created = self.client.post(
                "/api/pois/admin",
                data=poi_form(self.city_id, iconUrl=url, modelUrl=url),
                headers=self.headers,
            )
            self.assertEqual(created.status_code, 201)
            resp = self.client.delete(
                f"/api/pois/admin/{created.json()['id']}", headers=self.headers
            )
            self.assertEqual(resp.status_code, 204)
            self.assertTrue(victim.exists(), url)

    def test_replacing_icon_url_deletes_previous_upload(self) -> None:
        created = self._create_with_icon()
        icon = self._icon_path(created)
        self.assertTrue(icon.exists())
        resp = self.client.put(
            f"/api/pois/admin/{created['id']}",
            json={"iconUrl": "https://cdn.example.com/new.png"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["iconUrl"], "https://cdn.example.com/new.png")
        self.assertFalse(icon.exists())

    def test_clearing_icon_url_deletes_previous_upload(self) -> None:
        created = self._create_with_icon()
        icon = self._icon_path(created)
        resp = self.client.put(
            f"/api/pois/admin/{created['id']}", json={"iconUrl": None}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["iconUrl"], "")
        self.assertFalse(icon.exists())

    def test_file_shared_with_another_poi_is_kept(self) -> None:
        created = self._create_with_icon()
        icon = self._icon_path(created)
        relative = "/uploads/icons/" + icon.name
        other = self.client.post(
            "/api/pois/admin",
            data=poi_form(self.city_id, name="Copy", iconUrl=relative),
            headers=self.headers,
        ).json()
        resp = self.client.delete(f"/api/pois/admin/{other['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 204)
        self.assertTrue(icon.exists())
