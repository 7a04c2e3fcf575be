import importlib
import os
import sys
import unittest

PASSWORD = "Password!1"


class ApiTestCase(unittest.TestCase):
    """Boots the app against an in-memory database with one user per role."""

    def setUp(self):
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        for var in ("ADMIN_EMAIL", "ADMIN_PASSWORD", "ADMIN_NAME", "RUN_SEED_ADMIN"):
            os.environ.pop(var, None)

        if "app" in sys.modules:
            self.app_module = importlib.reload(sys.modules["app"])
        else:
            self.app_module = importlib.import_module("app")

        self.app = self.app_module.create_app()
        self.app.testing = True
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.db = self.app_module.db
        self.db.create_all()

        self.client = self.app.test_client()
        RoleEnum = self.app_module.RoleEnum

        self.super_admin = self._create_user("Sam", "Root", "root@example.com", RoleEnum.super_admin)
        self.admin = self._create_user("Ada", "Admin", "admin@example.com", RoleEnum.admin)
        self.employee = self._create_user("Eve", "Worker", "eve@example.com", RoleEnum.employee)
        self.other_employee = self._create_user("Oscar", "Other", "oscar@example.com", RoleEnum.employee)
        self.db.session.commit()

        self.super_token = self._login("root@example.com")
        self.admin_token = self._login("admin@example.com")
        self.employee_token = self._login("eve@example.com")
        self.other_token = self._login("oscar@example.com")

    def tearDown(self):
        self.db.session.remove()
        self.db.drop_all()
        self.ctx.pop()
        os.environ.pop("DATABASE_URL", None)
        if "app" in sys.modules:
            del sys.modules["app"]

    def _create_user(self, first_name, last_name, email, role, **extra):
        user = self.app_module.User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role,
            **extra,
        )
        user.set_password(PASSWORD)
        self.db.session.add(user)
        self.db.session.flush()
        return user

    def _login(self, email, password=PASSWORD):
        response = self.client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        self.assertEqual(response.status_code, 200, response.get_json())
        return response.get_json()["access_token"]

    def _auth_headers(self, token):
        return {"Authorization": f"Bearer {token}"}

    def _get(self, url, token, **kwargs):
        return self.client.get(url, headers=self._auth_headers(token), **kwargs)

    def _post(self, url, token, payload=None):
        return self.client.post(url, headers=self._auth_headers(token), json=payload or {})

    def _put(self, url, token, payload=None):
        return self.client.put(url, headers=self._auth_headers(token), json=payload or {})

    def _patch(self, url, token, payload=None):
        return self.client.patch(url, headers=self._auth_headers(token), json=payload or {})

    def _delete(self, url, token):
        return self.client.delete(url, headers=self._auth_headers(token))
