import unittest

from sqlmodel import select

from support import ApiTestCase

from event_portal.models import Department, DepartmentRequirement


class DepartmentCatalogTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.create_user("admin@example.com", role="admin")
        self.headers = self.auth_headers(self.admin)

    def test_create_department_normalizes_name(self):
        response = self.client.post(
            "/api/departments/",
            json={"name": "  pgso ", "requirements": ["Tables", " Chairs "]},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["name"], "PGSO")
        self.assertEqual([r["text"] for r in body["data"]["requirements"]], ["Tables", "Chairs"])

    def test_create_department_rejects_duplicate_name_in_any_case(self):
        self.create_department("PGSO")

        response = self.client.post(
            "/api/departments/", json={"name": "pgso"}, headers=self.headers
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(), {"success": False, "message": "Department already exists"}
        )
        count = len(self.session.exec(select(Department)).all())
        self.assertEqual(count, 1)

    def test_create_department_requires_name(self):
        response = self.client.post("/api/departments/", json={}, headers=self.headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Department name is required")

    def test_non_admin_cannot_create_department(self):
        user = self.create_user("user@example.com", department="PGSO")

        response = self.client.post(
            "/api/departments/", json={"name": "PHO"}, headers=self.auth_headers(user)
        )

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["success"])

    def test_list_departments_paginates_and_searches(self):
        for name in ("PGSO", "PHO", "PDRRMO"):
            self.create_department(name)

        response = self.client.get(
            "/api/departments/", params={"search": "p", "limit": 2}, headers=self.headers
        )

        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual([d["name"] for d in body["data"]], ["PDRRMO", "PGSO"])
        self.assertEqual(body["pagination"], {"current": 1, "pages": 2, "total": 3, "limit": 2})

    def test_visible_departments_are_public(self):
        self.create_department("PGSO", requirements=["Tables"])
        self.create_department("HIDDEN", is_visible=False)

        response = self.client.get("/api/departments/visible")

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual([d["name"] for d in data], ["PGSO"])
        self.assertEqual(data[0]["requirements"][0]["text"], "Tables")

    def test_add_and_delete_requirement(self):
        department = self.create_department("PGSO", requirements=["Tables"])

        added = self.client.post(
            f"/api/departments/{department.id}/requirements",
            json={"requirement": "  Sound system "},
            headers=self.headers,
        )
        self.assertEqual(added.status_code, 201)
        requirement_id = added.json()["data"]["id"]

        listed = self.client.get(
            f"/api/departments/{department.id}/requirements", headers=self.headers
        )
        self.assertEqual(
            [r["text"] for r in listed.json()["data"]], ["Tables", "Sound system"]
        )

        deleted = self.client.delete(
            f"/api/departments/{department.id}/requirements/{requirement_id}",
            headers=self.headers,
        )
        self.assertEqual(deleted.status_code, 200)
        remaining = self.session.exec(select(DepartmentRequirement)).all()
        self.assertEqual([r.text for r in remaining], ["Tables"])

    def test_add_requirement_requires_text(self):
        department = self.create_department("PGSO")

        response = self.client.post(
            f"/api/departments/{department.id}/requirements",
            json={"requirement": "   "},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Requirement text is required")

    def test_visibility_requires_boolean(self):
        department = self.create_department("PGSO")

        response = self.client.put(
            f"/api/departments/{department.id}/visibility",
            json={"is_visible": "no"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.put(
            f"/api/departments/{department.id}/visibility",
            json={"is_visible": False},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["data"]["is_visible"])

    def test_unknown_department_returns_404(self):
        response = self.client.get(
            "/api/departments/00000000-0000-0000-0000-000000000000/requirements",
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Department not found")

    def test_sync_creates_missing_departments_and_counts_users(self):
        self.create_department("PGSO")
        self.create_user("rep@example.com", department="PGSO")

        response = self.client.post(
            "/api/departments/sync",
            json={"departments": [{"name": "pgso"}, {"name": "pho", "is_visible": False}]},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 200)
        data = {d["name"]: d for d in response.json()["data"]}
        self.assertEqual(data["PGSO"]["user_count"], 1)
        self.assertEqual(data["PHO"]["user_count"], 0)
        self.assertFalse(data["PHO"]["is_visible"])

    def test_sync_rejects_blank_names(self):
        response = self.client.post(
            "/api/departments/sync",
            json={"departments": [{"name": "pho"}, {"name": "   "}]},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Department name is required")
        self.assertEqual(self.session.exec(select(Department)).all(), [])


if __name__ == "__main__":
    unittest.main()
