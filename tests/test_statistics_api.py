import io
import unittest

from openpyxl import load_workbook

from api_case import ApiTestCase


class StatisticsApiTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self._report("2024-04-01", "09:00", "18:00", 60)
        self._report("2024-04-07", "09:00", "13:00", 0)

        approved = self._leave("2024-04-02").get_json()["_id"]
        self._patch(f"/api/leaves/{approved}/status", self.admin_token, {"status": "Approved"})
        self._leave("2024-04-03")

        self._post("/api/holidays", self.admin_token, {"name": "New Year", "date": "2024-04-10"})
        self._post(
            "/api/saturdays/bulk-update",
            self.admin_token,
            {"saturdays": [{"year": 2024, "month": 4, "dates": [{"date": "2024-04-13", "isWeekend": True}]}]},
        )

    def _report(self, day, start, end, break_minutes):
        payload = {
            "reportDate": day,
            "description": "Daily work",
            "startTime": start,
            "endTime": end,
            "breakDuration": break_minutes,
        }
        response = self._post("/api/reports", self.employee_token, payload)
        self.assertEqual(response.status_code, 201, response.get_json())

    def _leave(self, day):
        return self._post(
            "/api/leaves",
            self.employee_token,
            {"startDate": day, "endDate": day, "leaveType": "Sick", "reason": "Flu"},
        )

    def test_month_reconciliation(self):
        response = self._get("/api/statistics?year=2024&month=4", self.admin_token)
        self.assertEqual(response.status_code, 200)
        data = response.get_json()

        self.assertEqual(len(data["days"]), 30)
        kinds = {day["date"]: day["kind"] for day in data["days"]}
        self.assertEqual(kinds["2024-04-10"], "holiday")
        self.assertEqual(kinds["2024-04-13"], "weekend")
        self.assertEqual(kinds["2024-04-14"], "weekend")
        self.assertEqual(kinds["2024-04-20"], "working")

        self.assertEqual([row["name"] for row in data["employees"]], ["Eve Worker", "Oscar Other"])
        eve, oscar = data["employees"]

        statuses = [cell["status"] for cell in eve["cells"]]
        self.assertEqual(statuses[0], "present")
        self.assertEqual(statuses[1], "leave")
        self.assertEqual(statuses[2], "absent")
        self.assertEqual(statuses[6], "extra_working")
        self.assertEqual(statuses[9], "off")
        self.assertEqual(eve["cells"][0]["value"], "08:00")

        self.assertEqual(eve["leaveTaken"], 23.0)
        self.assertEqual(eve["extraWorkingDays"], 0.5)
        self.assertEqual(eve["paidLeave"], 1.0)
        self.assertEqual(eve["deduction"], -21.5)
        self.assertEqual(eve["salaryDays"], 8.5)

        self.assertEqual(oscar["leaveTaken"], 24.0)
        self.assertEqual(oscar["salaryDays"], 7.0)

    def test_alternate_saturday_record_joins_weekend_settings(self):
        response = self._put("/api/alternate-saturdays/4/2024", self.admin_token, {"workingSaturdays": [1, 3]})
        self.assertEqual(response.status_code, 201)

        data = self._get("/api/statistics?year=2024&month=4", self.admin_token).get_json()
        kinds = {day["date"]: day["kind"] for day in data["days"]}
        self.assertEqual(
            [kinds[day] for day in ("2024-04-06", "2024-04-13", "2024-04-20", "2024-04-27")],
            ["working", "weekend", "working", "weekend"],
        )

        eve = data["employees"][0]
        self.assertEqual(eve["cells"][26]["status"], "off")
        self.assertEqual(eve["cells"][19]["status"], "absent")
        self.assertEqual(eve["leaveTaken"], 22.0)

    def test_inactive_employees_are_skipped(self):
        self.other_employee.active = False
        self.db.session.commit()

        data = self._get("/api/statistics?year=2024&month=4", self.admin_token).get_json()
        self.assertEqual([row["employeeId"] for row in data["employees"]], [self.employee.id])

    def test_bad_requests(self):
        self.assertEqual(self._get("/api/statistics?year=2024&month=13", self.admin_token).status_code, 400)
        self.assertEqual(self._get("/api/statistics?year=2024", self.admin_token).status_code, 400)
        self.assertEqual(self._get("/api/statistics?year=2024&month=4", self.employee_token).status_code, 403)

    def test_export_workbook(self):
        response = self._get("/api/statistics/export?year=2024&month=4", self.admin_token)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.mimetype,
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        self.assertIn("attendance_2024_04.xlsx", response.headers["Content-Disposition"])

        sheet = load_workbook(io.BytesIO(response.data)).active
        self.assertEqual(sheet.title, "2024-04")
        self.assertEqual(sheet["A1"].value, "Employee")
        self.assertEqual(sheet["B1"].value, "Mon, 1 April")
        self.assertEqual(sheet["A2"].value, "Eve Worker")
        self.assertEqual(sheet["B2"].value, "08:00")
        self.assertEqual(sheet["C2"].value, "leave")


if __name__ == "__main__":
    unittest.main()
