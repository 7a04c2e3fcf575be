import unittest

from api_case import ApiTestCase


class TeamsApiTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        response = self._post("/api/projects", self.admin_token, {"name": "Payroll revamp"})
        self.project_id = response.get_json()["_id"]

    def _create_team(self, **overrides):
        payload = {
            "name": "Platform",
            "manager": self.employee.id,
            "teamMembers": [self.employee.id, self.other_employee.id],
            "project": self.project_id,
        }
        payload.update(overrides)
        return self._post("/api/teams", self.admin_token, payload)

    def test_create_excludes_manager_from_members(self):
        response = self._create_team()
        self.assertEqual(response.status_code, 201, response.get_json())
        team = response.get_json()
        self.assertEqual(team["name"], "Platform")
        self.assertEqual(team["status"], "Active")
        self.assertEqual(team["manager"]["_id"], self.employee.id)
        self.assertEqual([member["_id"] for member in team["teamMembers"]], [self.other_employee.id])
        self.assertEqual(team["project"]["name"], "Payroll revamp")
        self.assertIsNone(team["project"]["client"])

    def test_validation(self):
        self.assertEqual(self._create_team(name=" ").status_code, 400)
        self.assertEqual(self._create_team(manager=999).status_code, 400)
        self.assertEqual(self._create_team(manager=None).status_code, 400)
        self.assertEqual(self._create_team(project=999).status_code, 400)
        self.assertEqual(self._create_team(teamMembers=[999]).status_code, 400)
        self.assertEqual(self._create_team(status="Paused").status_code, 400)

        response = self._create_team(project=None)
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.get_json()["project"])

    def test_only_admins_manage_teams(self):
        team_id = self._create_team().get_json()["_id"]
        payload = {"name": "Mine", "manager": self.employee.id}
        self.assertEqual(self._post("/api/teams", self.employee_token, payload).status_code, 403)
        self.assertEqual(self._put(f"/api/teams/{team_id}", self.employee_token, payload).status_code, 403)
        self.assertEqual(self._delete(f"/api/teams/{team_id}", self.employee_token).status_code, 403)

    def test_listing_is_scoped_to_manager_and_members(self):
        team_id = self._create_team().get_json()["_id"]
        outsider = self._create_user("Nia", "New", "nia@example.com", self.app_module.RoleEnum.employee)
        self.db.session.commit()
        outsider_token = self._login("nia@example.com")

        for token in (self.admin_token, self.employee_token, self.other_token):
            teams = self._get("/api/teams", token).get_json()
            self.assertEqual([team["_id"] for team in teams], [team_id])
            self.assertEqual(self._get(f"/api/teams/{team_id}", token).status_code, 200)

        self.assertEqual(self._get("/api/teams", outsider_token).get_json(), [])
        self.assertEqual(self._get(f"/api/teams/{team_id}", outsider_token).status_code, 403)

    def test_update_and_delete(self):
        team_id = self._create_team().get_json()["_id"]

        response = self._put(
            f"/api/teams/{team_id}",
            self.admin_token,
            {"manager": self.other_employee.id, "status": "Inactive"},
        )
        self.assertEqual(response.status_code, 200, response.get_json())
        team = response.get_json()
        self.assertEqual(team["manager"]["_id"], self.other_employee.id)
        self.assertEqual(team["teamMembers"], [])
        self.assertEqual(team["status"], "Inactive")
        self.assertEqual(team["name"], "Platform")

        self.assertEqual(self._put(f"/api/teams/{team_id}", self.admin_token, {"manager": 999}).status_code, 400)

        self.assertEqual(self._delete(f"/api/teams/{team_id}", self.admin_token).status_code, 200)
        self.assertEqual(self._get(f"/api/teams/{team_id}", self.admin_token).status_code, 404)

    def test_deleting_project_detaches_team(self):
        team_id = self._create_team().get_json()["_id"]
        self.assertEqual(self._delete(f"/api/projects/{self.project_id}", self.admin_token).status_code, 200)

        team = self._get(f"/api/teams/{team_id}", self.admin_token).get_json()
        self.assertIsNone(team["project"])


if __name__ == "__main__":
    unittest.main()
