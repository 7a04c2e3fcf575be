import importlib
import os
import sys
import unittest

SEED_VARS = ("RUN_SEED_ADMIN", "ADMIN_EMAIL", "ADMIN_PASSWORD", "ADMIN_NAME")


class AdminSeedTestCase(unittest.TestCase):
    def setUp(self):
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        for var in SEED_VARS:
            os.environ.pop(var, None)

        if "app" in sys.modules:
            self.app_module = importlib.reload(sys.modules["app"])
        else:
            self.app_module = importlib.import_module("app")

        self.app = self.app_module.create_app()
        self.app.testing = True
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.app_module.db.create_all()

    def tearDown(self):
        self.app_module.db.session.remove()
        self.app_module.db.drop_all()
        self.ctx.pop()
        os.environ.pop("DATABASE_URL", None)
        for var in SEED_VARS:
            os.environ.pop(var, None)
        if "app" in sys.modules:
            del sys.modules["app"]

    def test_no_password_means_no_admin(self):
        status, email = self.app_module._ensure_admin_user(flask_app=self.app)
        self.assertEqual(status, "skipped")
        self.assertEqual(email, "admin@hrms.local")
        self.assertEqual(self.app_module.User.query.count(), 0)

    def test_admin_created_and_login_succeeds(self):
        status, email = self.app_module._ensure_admin_user(flask_app=self.app, password="Admin@123")
        self.assertEqual(status, "created")
        self.assertEqual(email, "admin@hrms.local")

        admin = self.app_module.User.query.filter_by(role=self.app_module.RoleEnum.super_admin).one()
        self.assertTrue(admin.check_password("Admin@123"))

        client = self.app.test_client()
        response = client.post(
            "/api/auth/login",
            json={"email": email, "password": "Admin@123"},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertIn("access_token", data)
        self.assertEqual(data["role"], "SuperAdmin")

    def test_environment_configures_admin(self):
        os.environ["ADMIN_EMAIL"] = " Boss@Example.com "
        os.environ["ADMIN_PASSWORD"] = "FromEnv!1"
        os.environ["ADMIN_NAME"] = "Boss"

        status, email = self.app_module._ensure_admin_user(flask_app=self.app)
        self.assertEqual(status, "created")
        self.assertEqual(email, "boss@example.com")

        admin = self.app_module.User.query.filter_by(email=email).one()
        self.assertEqual(admin.first_name, "Boss")
        self.assertTrue(admin.check_password("FromEnv!1"))

    def test_force_reset_updates_password(self):
        status, email = self.app_module._ensure_admin_user(flask_app=self.app, password="OldPassword!1")
        self.assertEqual(status, "created")

        admin = self.app_module.User.query.filter_by(email=email).one()
        admin.set_password("ChangedPassword!1")
        self.app_module.db.session.commit()

        status, _ = self.app_module._ensure_admin_user(
            flask_app=self.app,
            password="NewPassword!2",
            force_reset=True,
        )
        self.assertEqual(status, "reset")

        refreshed = self.app_module.db.session.get(self.app_module.User, admin.id)
        self.assertTrue(refreshed.check_password("NewPassword!2"))

    def test_existing_user_is_promoted(self):
        User = self.app_module.User
        user = User(first_name="Ann", email="admin@hrms.local", role=self.app_module.RoleEnum.employee)
        user.set_password("Password!1")
        self.app_module.db.session.add(user)
        self.app_module.db.session.commit()

        status, _ = self.app_module._ensure_admin_user(flask_app=self.app)
        self.assertEqual(status, "updated")
        self.assertEqual(User.query.one().role, self.app_module.RoleEnum.super_admin)

    def test_second_super_admin_is_not_created_on_startup(self):
        self.app_module._ensure_admin_user(flask_app=self.app, password="Admin@123")

        status, _ = self.app_module._ensure_admin_user(
            flask_app=self.app,
            email="another@hrms.local",
            password="Admin@123",
        )
        self.assertEqual(status, "skipped")
        self.assertEqual(self.app_module.User.query.count(), 1)


class CliCommandsTestCase(unittest.TestCase):
    def setUp(self):
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        for var in SEED_VARS:
            os.environ.pop(var, None)

        if "app" in sys.modules:
            self.app_module = importlib.reload(sys.modules["app"])
        else:
            self.app_module = importlib.import_module("app")
        self.app = self.app_module.app
        self.runner = self.app.test_cli_runner()

    def tearDown(self):
        with self.app.app_context():
            self.app_module.db.session.remove()
            self.app_module.db.drop_all()
        os.environ.pop("DATABASE_URL", None)
        if "app" in sys.modules:
            del sys.modules["app"]

    def test_seed_admin_command(self):
        result = self.runner.invoke(args=["seed-admin", "--email", "Chief@HRMS.local", "--password", "Chief!123"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Super admin created: chief@hrms.local", result.output)

        result = self.runner.invoke(args=["seed-admin", "--email", "chief@hrms.local", "--password", "Other!123"])
        self.assertIn("password reset", result.output)

        with self.app.app_context():
            admin = self.app_module.User.query.filter_by(email="chief@hrms.local").one()
            self.assertTrue(admin.check_password("Other!123"))

    def test_statistics_command(self):
        result = self.runner.invoke(args=["statistics", "--year", "2024", "--month", "4"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Attendance for 2024-04 (0 employees)", result.output)

        result = self.runner.invoke(args=["statistics", "--year", "2024", "--month", "13"])
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
