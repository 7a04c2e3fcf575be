import unittest

from api_case import ApiTestCase


class UsersApiTestCase(ApiTestCase):
    def _create_employee(self, token=None, **overrides):
        payload = {
            "firstName": "Paul",
            "lastName": "Payroll",
            "email": "paul@example.com",
            "password": "secret1",
            "joiningDate": "2024-01-15",
            "dob": "1991-07-04",
            "mobile1": "0771234567",
            "salary": "85000",
        }
        payload.update(overrides)
        return self._post("/api/users", token or self.admin_token, payload)

    def test_admin_creates_employee(self):
        response = self._create_employee()
        self.assertEqual(response.status_code, 201)
        user = response.get_json()["user"]
        self.assertEqual(user["role"], "Employee")
        self.assertEqual(user["joiningDate"], "2024-01-15")
        self.assertEqual(user["salary"], 85000.0)
        self.assertEqual(user["status"], "Active")

    def test_employee_cannot_create_users(self):
        response = self._create_employee(token=self.employee_token)
        self.assertEqual(response.status_code, 403)

    def test_duplicate_email_is_rejected(self):
        response = self._create_employee(email="EVE@example.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["msg"], "Email already registered")

    def test_only_super_admin_grants_super_admin(self):
        response = self._create_employee(role="SuperAdmin")
        self.assertEqual(response.status_code, 403)

        response = self._create_employee(token=self.super_token, role="SuperAdmin")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["user"]["role"], "SuperAdmin")

    def test_invalid_fields_are_reported(self):
        response = self._create_employee(salary="-5")
        self.assertEqual(response.status_code, 400)
        response = self._create_employee(joiningDate="15/01/2024")
        self.assertEqual(response.status_code, 400)
        response = self._create_employee(role="Manager")
        self.assertEqual(response.status_code, 400)

    def test_list_is_paginated_and_filterable(self):
        response = self._get("/api/users?page=1&limit=2", self.admin_token)
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(len(data["users"]), 2)
        self.assertEqual(data["totalItems"], 4)
        self.assertEqual(data["totalPages"], 2)
        self.assertEqual(data["currentPage"], 1)

        response = self._get("/api/users?role=Employee", self.admin_token)
        emails = sorted(user["email"] for user in response.get_json()["users"])
        self.assertEqual(emails, ["eve@example.com", "oscar@example.com"])

        response = self._get("/api/users?q=osc", self.admin_token)
        self.assertEqual([user["firstName"] for user in response.get_json()["users"]], ["Oscar"])

    def test_employee_can_only_view_self(self):
        response = self._get(f"/api/users/{self.employee.id}", self.employee_token)
        self.assertEqual(response.status_code, 200)
        response = self._get(f"/api/users/{self.other_employee.id}", self.employee_token)
        self.assertEqual(response.status_code, 403)

    def test_employee_self_update_is_limited(self):
        response = self._put(
            f"/api/users/{self.employee.id}",
            self.employee_token,
            {"mobile1": "0711111111", "role": "Admin", "salary": 1},
        )
        self.assertEqual(response.status_code, 200)
        user = response.get_json()["user"]
        self.assertEqual(user["mobile1"], "0711111111")
        self.assertEqual(user["role"], "Employee")
        self.assertIsNone(user["salary"])

    def test_admin_updates_department_and_status(self):
        department = self._post("/api/departments", self.admin_token, {"name": "Engineering"}).get_json()
        response = self._put(
            f"/api/users/{self.employee.id}",
            self.admin_token,
            {"department": department["_id"], "status": "Inactive"},
        )
        self.assertEqual(response.status_code, 200)
        user = response.get_json()["user"]
        self.assertEqual(user["department"], {"_id": department["_id"], "name": "Engineering"})
        self.assertEqual(user["status"], "Inactive")

    def test_delete_rules(self):
        response = self._delete(f"/api/users/{self.admin.id}", self.admin_token)
        self.assertEqual(response.status_code, 400)

        response = self._delete(f"/api/users/{self.super_admin.id}", self.admin_token)
        self.assertEqual(response.status_code, 403)

        response = self._delete(f"/api/users/{self.other_employee.id}", self.admin_token)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.db.session.get(self.app_module.User, self.other_employee.id))

    def test_last_super_admin_cannot_be_deleted(self):
        second = self._create_employee(token=self.super_token, role="SuperAdmin", email="second@example.com")
        second_token = self._login("second@example.com", "secret1")

        response = self._delete(f"/api/users/{self.super_admin.id}", second_token)
        self.assertEqual(response.status_code, 200)

        response = self._delete(f"/api/users/{second.get_json()['user']['_id']}", self.super_token)
        self.assertEqual(response.status_code, 400)


class DepartmentsApiTestCase(ApiTestCase):
    def test_department_crud(self):
        response = self._post("/api/departments", self.admin_token, {"name": "Finance", "head": "Ada"})
        self.assertEqual(response.status_code, 201)
        department_id = response.get_json()["_id"]

        duplicate = self._post("/api/departments", self.admin_token, {"name": "finance"})
        self.assertEqual(duplicate.status_code, 400)

        response = self._put(f"/api/departments/{department_id}", self.admin_token, {"head": "Sam"})
        self.assertEqual(response.get_json()["head"], "Sam")

        listing = self._get("/api/departments", self.employee_token).get_json()
        self.assertEqual(listing["totalItems"], 1)
        self.assertEqual(listing["departments"][0]["name"], "Finance")

        response = self._delete(f"/api/departments/{department_id}", self.admin_token)
        self.assertEqual(response.status_code, 200)

    def test_deleting_department_detaches_employees(self):
        department = self._post("/api/departments", self.admin_token, {"name": "Ops"}).get_json()
        self._put(f"/api/users/{self.employee.id}", self.admin_token, {"department": department["_id"]})

        self._delete(f"/api/departments/{department['_id']}", self.admin_token)
        self.db.session.expire_all()
        self.assertIsNone(self.db.session.get(self.app_module.User, self.employee.id).department_id)

    def test_employee_cannot_manage_departments(self):
        response = self._post("/api/departments", self.employee_token, {"name": "Ops"})
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
