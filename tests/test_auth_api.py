import re
import unittest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from requests import exceptions as requests_exceptions

from api_case import PASSWORD, ApiTestCase


class AuthApiTestCase(ApiTestCase):
    def _request_reset(self, email="eve@example.com"):
        self.app.config["RESEND_API_KEY"] = "re_test_key"
        with patch("mailer.requests.post") as post_mock:
            post_mock.return_value = MagicMock(status_code=200)
            response = self.client.post("/api/auth/forgot-password", json={"email": email})
        return response, post_mock

    def test_login_returns_token_role_and_user(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "ADMIN@example.com", "password": PASSWORD},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertIn("access_token", data)
        self.assertEqual(data["role"], "Admin")
        self.assertEqual(data["user"]["email"], "admin@example.com")
        self.assertEqual(data["user"]["firstName"], "Ada")

    def test_login_rejects_bad_password_and_inactive_users(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "eve@example.com", "password": "wrong"},
        )
        self.assertEqual(response.status_code, 401)

        self.employee.active = False
        self.db.session.commit()
        response = self.client.post(
            "/api/auth/login",
            json={"email": "eve@example.com", "password": PASSWORD},
        )
        self.assertEqual(response.status_code, 401)

    def test_login_requires_both_fields(self):
        response = self.client.post("/api/auth/login", json={"email": "eve@example.com"})
        self.assertEqual(response.status_code, 400)

    def test_token_carries_role_claim(self):
        response = self._get("/api/statistics?year=2024&month=4", self.employee_token)
        self.assertEqual(response.status_code, 403)
        response = self._get("/api/statistics?year=2024&month=4", self.admin_token)
        self.assertEqual(response.status_code, 200)

    def test_signup_creates_employee(self):
        response = self.client.post(
            "/api/auth/signup",
            json={
                "firstName": "Nina",
                "lastName": "New",
                "email": "Nina@Example.com",
                "password": "secret1",
            },
        )
        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertEqual(data["role"], "Employee")
        self.assertEqual(data["user"]["email"], "nina@example.com")

        duplicate = self.client.post(
            "/api/auth/signup",
            json={"firstName": "Nina", "email": "nina@example.com", "password": "secret1"},
        )
        self.assertEqual(duplicate.status_code, 400)

    def test_signup_rejects_short_password(self):
        response = self.client.post(
            "/api/auth/signup",
            json={"firstName": "Short", "email": "short@example.com", "password": "12345"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("at least 6", response.get_json()["msg"])

    def test_me_returns_current_profile(self):
        response = self._get("/api/auth/me", self.employee_token)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["_id"], self.employee.id)

    def test_me_requires_token(self):
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, 401)

    def test_forgot_password_for_unknown_email_sends_nothing(self):
        response, post_mock = self._request_reset("nobody@example.com")
        self.assertEqual(response.status_code, 200)
        post_mock.assert_not_called()

    def test_forgot_password_then_reset(self):
        response, post_mock = self._request_reset()
        self.assertEqual(response.status_code, 200)
        post_mock.assert_called_once()

        args, kwargs = post_mock.call_args
        self.assertEqual(args[0], "https://api.resend.com/emails")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer re_test_key")
        self.assertEqual(kwargs["json"]["to"], ["eve@example.com"])
        match = re.search(r"/reset-password/(\S+)", kwargs["json"]["text"])
        self.assertIsNotNone(match)
        token = match.group(1)

        self.db.session.refresh(self.employee)
        self.assertNotEqual(self.employee.reset_token_hash, token)

        response = self.client.post(
            "/api/auth/reset-password",
            json={"token": token, "password": "brand-new"},
        )
        self.assertEqual(response.status_code, 200)
        self._login("eve@example.com", "brand-new")

        reused = self.client.post(
            "/api/auth/reset-password",
            json={"token": token, "password": "another-one"},
        )
        self.assertEqual(reused.status_code, 400)

    def test_reset_rejects_expired_token(self):
        response, post_mock = self._request_reset()
        token = re.search(r"/reset-password/(\S+)", post_mock.call_args.kwargs["json"]["text"]).group(1)

        self.employee.reset_token_expires_at = datetime.utcnow() - timedelta(minutes=1)
        self.db.session.commit()

        response = self.client.post(
            "/api/auth/reset-password",
            json={"token": token, "password": "brand-new"},
        )
        self.assertEqual(response.status_code, 400)

    def test_forgot_password_hides_delivery_failures(self):
        self.app.config["RESEND_API_KEY"] = ""
        with patch.dict("os.environ", {"RESEND_API_KEY": ""}):
            response = self.client.post("/api/auth/forgot-password", json={"email": "eve@example.com"})
        self.assertEqual(response.status_code, 200)
        unknown = self.client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        self.assertEqual(response.get_json(), unknown.get_json())

        self.app.config["RESEND_API_KEY"] = "re_test_key"
        with patch("mailer.requests.post", side_effect=requests_exceptions.Timeout("slow")), \
                self.assertLogs(self.app.logger, level="WARNING") as logs:
            response = self.client.post("/api/auth/forgot-password", json={"email": "eve@example.com"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(any("not delivered" in line for line in logs.output))

    def test_logout(self):
        response = self.client.post("/api/auth/logout")
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
