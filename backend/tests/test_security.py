import unittest
from datetime import timedelta

from support import ApiTestCase

from event_portal.core.security import (
    create_access_token,
    get_password_hash,
    parse_duration,
    verify_password,
    verify_token,
)


class DurationTests(unittest.TestCase):
    def test_units(self):
        self.assertEqual(parse_duration("7d"), timedelta(days=7))
        self.assertEqual(parse_duration("12h"), timedelta(hours=12))
        self.assertEqual(parse_duration("30m"), timedelta(minutes=30))
        self.assertEqual(parse_duration("2w"), timedelta(weeks=2))
        self.assertEqual(parse_duration("90"), timedelta(seconds=90))

    def test_invalid(self):
        for value in ("", "7 days", "-1d", "d"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_duration(value)


class TokenTests(unittest.TestCase):
    def test_round_trip(self):
        token = create_access_token("user-1")

        self.assertEqual(verify_token(token)["sub"], "user-1")

    def test_expired_token_is_rejected(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))

        with self.assertRaises(ValueError):
            verify_token(token)

    def test_password_hash(self):
        hashed = get_password_hash("s3cret-pass")

        self.assertTrue(verify_password("s3cret-pass", hashed))
        self.assertFalse(verify_password("wrong-pass", hashed))


class AuthFlowTests(ApiTestCase):
    def test_register_login_and_profile(self):
        registered = self.client.post(
            "/api/auth/register",
            json={
                "email": "Rep@Example.com",
                "password": "s3cret-pass",
                "name": "Rep",
                "department": "pgso",
            },
        )
        self.assertEqual(registered.status_code, 201)
        self.assertEqual(registered.json()["data"]["department"], "PGSO")

        duplicate = self.client.post(
            "/api/auth/register",
            json={"email": "rep@example.com", "password": "another-pass"},
        )
        self.assertEqual(duplicate.status_code, 400)

        login = self.client.post(
            "/api/auth/login", json={"email": "rep@example.com", "password": "s3cret-pass"}
        )
        self.assertEqual(login.status_code, 200)
        token = login.json()["data"]["access_token"]

        profile = self.client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(profile.json()["data"]["email"], "rep@example.com")

    def test_wrong_password(self):
        self.client.post(
            "/api/auth/register", json={"email": "rep@example.com", "password": "s3cret-pass"}
        )

        response = self.client.post(
            "/api/auth/login", json={"email": "rep@example.com", "password": "nope-nope"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_department_users_lists_active_members(self):
        self.create_user("b@example.com", department="PGSO")
        self.create_user("a@example.com", department="PGSO")
        self.create_user("c@example.com", department="PHO")
        viewer = self.create_user("viewer@example.com")

        response = self.client.get("/api/users/department/pgso", headers=self.auth_headers(viewer))

        self.assertEqual(
            [u["email"] for u in response.json()["data"]], ["a@example.com", "b@example.com"]
        )


if __name__ == "__main__":
    unittest.main()
