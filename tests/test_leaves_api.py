import unittest

from api_case import ApiTestCase


class LeavesApiTestCase(ApiTestCase):
    def _request(self, token=None, **overrides):
        payload = {
            "startDate": "2024-04-15",
            "endDate": "2024-04-16",
            "leaveType": "Vacation",
            "reason": "Family trip",
        }
        payload.update(overrides)
        return self._post("/api/leaves", token or self.employee_token, payload)

    def test_employee_requests_leave(self):
        response = self._request()
        self.assertEqual(response.status_code, 201)
        leave = response.get_json()
        self.assertEqual(leave["status"], "Pending")
        self.assertEqual(leave["employee"]["_id"], self.employee.id)
        self.assertFalse(leave["isHalfDay"])

    def test_date_rules(self):
        response = self._request(startDate="2024-04-16", endDate="2024-04-15")
        self.assertEqual(response.status_code, 400)

        response = self._request(isHalfDay=True)
        self.assertEqual(response.status_code, 400)
        self.assertIn("same day", response.get_json()["msg"])

        response = self._request(startDate="2024-04-15", endDate="2024-04-15", isHalfDay=True)
        self.assertEqual(response.status_code, 201)

        response = self._request(leaveType="Holiday")
        self.assertEqual(response.status_code, 400)

    def test_listing_is_scoped_to_owner(self):
        self._request()
        self._request(token=self.other_token)

        own = self._get("/api/leaves", self.employee_token).get_json()["leaves"]
        self.assertEqual({leave["employee"]["_id"] for leave in own}, {self.employee.id})

        everyone = self._get("/api/leaves", self.admin_token).get_json()["leaves"]
        self.assertEqual(len(everyone), 2)

        filtered = self._get(f"/api/leaves?employee={self.other_employee.id}", self.admin_token).get_json()["leaves"]
        self.assertEqual(len(filtered), 1)

    def test_review_only_while_pending(self):
        leave_id = self._request().get_json()["_id"]

        response = self._patch(f"/api/leaves/{leave_id}/status", self.employee_token, {"status": "Approved"})
        self.assertEqual(response.status_code, 403)

        response = self._patch(
            f"/api/leaves/{leave_id}/status",
            self.admin_token,
            {"status": "Approved", "comments": "Enjoy"},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["status"], "Approved")
        self.assertEqual(data["comments"], "Enjoy")
        self.assertEqual(data["reviewedBy"]["_id"], self.admin.id)

        response = self._patch(f"/api/leaves/{leave_id}/status", self.admin_token, {"status": "Rejected"})
        self.assertEqual(response.status_code, 400)

    def test_review_rejects_pending_status(self):
        leave_id = self._request().get_json()["_id"]
        response = self._patch(f"/api/leaves/{leave_id}/status", self.admin_token, {"status": "Pending"})
        self.assertEqual(response.status_code, 400)

    def test_owner_edits_and_deletes_pending_leave(self):
        leave_id = self._request().get_json()["_id"]

        response = self._put(f"/api/leaves/{leave_id}", self.other_token, {"reason": "Mine now"})
        self.assertEqual(response.status_code, 403)

        response = self._put(f"/api/leaves/{leave_id}", self.employee_token, {"endDate": "2024-04-18"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["endDate"], "2024-04-18")

        response = self._delete(f"/api/leaves/{leave_id}", self.employee_token)
        self.assertEqual(response.status_code, 200)

    def test_reviewed_leave_is_locked_for_owner(self):
        leave_id = self._request().get_json()["_id"]
        self._patch(f"/api/leaves/{leave_id}/status", self.admin_token, {"status": "Rejected"})

        response = self._put(f"/api/leaves/{leave_id}", self.employee_token, {"reason": "Please"})
        self.assertEqual(response.status_code, 400)
        response = self._delete(f"/api/leaves/{leave_id}", self.employee_token)
        self.assertEqual(response.status_code, 400)

        response = self._delete(f"/api/leaves/{leave_id}", self.admin_token)
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
