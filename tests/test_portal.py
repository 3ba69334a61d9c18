"""
HTTP tests for the portal endpoints
"""

import io
import unittest

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from upokari.config import Config
from upokari.database.db_manager import DatabaseManager
from upokari.portal.app import create_app
from upokari.portal.auth import create_token
from upokari.portal.routes import NO_CACHE_HEADERS

SECRET = "portal-test-secret-0123456789abcdef"


def make_client(**client_kwargs):
    config = Config()
    config.JWT_SECRET = SECRET
    config.MIN_PRESENT_FOR_RANKING = 10
    config.SIMILARITY_THRESHOLD = 0.70
    db = DatabaseManager("sqlite://")
    app = create_app(config, db)
    return TestClient(app, **client_kwargs), db


def auth_headers(user_id="admin-1"):
    return {"Authorization": f"Bearer {create_token(user_id, SECRET)}"}


class TestReports(unittest.TestCase):

    def setUp(self):
        self.client, self.db = make_client()
        docs = [
            {"scholarshipRollNumber": "R1", "institute": "Dhaka Model High School",
             "instituteClass": "4", "isAttendanceComplete": True, "resultDetails": {"marks": 30}},
            {"scholarshipRollNumber": "R2", "institute": "dhaka model school",
             "instituteClass": "Four", "isAttendanceComplete": True, "resultDetails": {"marks": 40}},
            {"scholarshipRollNumber": "R3", "institute": "DHAKA MODEL  School 2",
             "instituteClass": "5", "isAttendanceComplete": False},
        ]
        for doc in docs:
            self.db.save_applicant(doc)

    def test_result_stats(self):
        resp = self.client.get("/result-stats")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["cache-control"], NO_CACHE_HEADERS["Cache-Control"])
        body = resp.json()
        self.assertTrue(body["success"])
        data = body["data"]
        self.assertEqual(set(data), {"overall", "byClass", "lower", "upper", "top5ByClass"})
        self.assertEqual(data["overall"]["totalPresent"], 2)
        self.assertEqual(data["overall"]["passCount"], 2)
        self.assertEqual(data["overall"]["got70Count"], 1)
        self.assertEqual([c["class"] for c in data["byClass"]], ["4", "5"])

    def test_institute_wise_stats(self):
        resp = self.client.get("/institute-wise-stats")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["cache-control"], NO_CACHE_HEADERS["Cache-Control"])
        data = resp.json()["data"]
        self.assertEqual(data["lowerBand"]["totalApplications"], 3)
        self.assertEqual(data["lowerBand"]["totalNumberOfInstitutions"], 1)
        self.assertEqual(data["lowerBand"]["institutes"][0]["applicationCount"], 3)
        self.assertEqual(data["upperBand"]["institutes"], [])

    def test_export(self):
        resp = self.client.get("/institute-wise-stats/export")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"))
        wb = load_workbook(io.BytesIO(resp.content))
        self.assertEqual(wb.sheetnames, ["Lower Band", "Upper Band"])
        self.assertEqual(wb["Lower Band"].cell(row=2, column=2).value, "Dhaka Model High School")

    def test_stats_reflect_new_results_immediately(self):
        resp = self.client.post(
            "/add-result",
            json={"scholarshipRollNumber": "R3", "resultDetails": {"marks": 44}},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 200)
        overall = self.client.get("/result-stats").json()["data"]["overall"]
        # R3 is still absent, so its mark does not count
        self.assertEqual(overall["resultAddedCount"], 2)

    def test_empty_database(self):
        client, _ = make_client()
        data = client.get("/result-stats").json()["data"]
        self.assertEqual(data["overall"]["totalApplications"], 0)
        self.assertEqual(data["overall"]["passRatio"], 0.0)
        data = client.get("/institute-wise-stats").json()["data"]
        self.assertEqual(data["lowerBand"]["totalNumberOfInstitutions"], 0)


class TestResultCalculationConfig(unittest.TestCase):

    def setUp(self):
        self.client, self.db = make_client()

    def test_defaults(self):
        resp = self.client.get("/result-calculation-config")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["lower"]["totalMarks"], 45)
        self.assertEqual(resp.json()["data"]["upper"]["highMarksPercent"], 60)

    def test_write_requires_token(self):
        resp = self.client.post("/result-calculation-config", json={"lower": {"passPercent": 50}})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Unauthorized"})

        resp = self.client.post(
            "/result-calculation-config",
            json={"lower": {"passPercent": 50}},
            headers={"Authorization": "Bearer not-a-token"},
        )
        self.assertEqual(resp.status_code, 401)

    def test_partial_write(self):
        resp = self.client.post(
            "/result-calculation-config",
            json={"lower": {"passPercent": 50}},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 200)
        lower = self.client.get("/result-calculation-config").json()["data"]["lower"]
        self.assertEqual(lower["passPercent"], 50)
        self.assertEqual(lower["totalMarks"], 45)

    def test_invalid_bodies_are_rejected(self):
        for body in (
            {},
            {"lower": {"passPercent": 150}},
            {"upper": {"totalMarks": 0}},
            {"upper": {"highMarksPercent": "lots"}},
        ):
            resp = self.client.post("/result-calculation-config", json=body, headers=auth_headers())
            self.assertEqual(resp.status_code, 400, body)
            self.assertIn("message", resp.json())


class TestResultRecords(unittest.TestCase):

    def setUp(self):
        self.client, self.db = make_client()
        self.db.save_applicant({"scholarshipRollNumber": "DMS2601", "searchCount": 2})
        self.db.save_applicant({"scholarshipRollNumber": "DMS2602"})

    def test_add_result_unknown_roll(self):
        resp = self.client.post(
            "/add-result",
            json={"scholarshipRollNumber": "nope", "resultDetails": {"marks": 10}},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"message": "Scholarship not found"})

    def test_add_result_missing_fields(self):
        resp = self.client.post(
            "/add-result", json={"scholarshipRollNumber": "DMS2601"}, headers=auth_headers()
        )
        self.assertEqual(resp.status_code, 400)

    def test_course_fund_and_delete(self):
        resp = self.client.post(
            "/update-course-fund",
            json={"scholarshipRollNumber": "DMS2601", "courseFund": 500},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 404)

        self.client.post(
            "/add-result",
            json={"scholarshipRollNumber": "DMS2601", "resultDetails": {"marks": 10}},
            headers=auth_headers(),
        )
        resp = self.client.post(
            "/update-course-fund",
            json={"scholarshipRollNumber": "DMS2601", "courseFund": 500},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["updatedCourseFund"], 500)

        resp = self.client.delete("/result/DMS2601", headers=auth_headers())
        self.assertEqual(resp.status_code, 200)
        resp = self.client.delete("/result/DMS2601", headers=auth_headers())
        self.assertEqual(resp.status_code, 404)

    def test_course_fund_on_imported_list_details(self):
        self.db.save_applicant({
            "scholarshipRollNumber": "DMS2603",
            "isAttendanceComplete": True,
            "instituteClass": "4",
            "resultDetails": [{"marks": 40}],
        })
        resp = self.client.post(
            "/update-course-fund",
            json={"scholarshipRollNumber": "DMS2603", "courseFund": 250},
            headers=auth_headers(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["updatedCourseFund"], 250)
        overall = self.client.get("/result-stats").json()["data"]["overall"]
        self.assertEqual(overall["resultAddedCount"], 1)
        self.assertEqual(overall["passCount"], 1)

    def test_search_and_total_searches(self):
        resp = self.client.get("/search-result/DMS2601")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["searchCount"], 3)

        resp = self.client.get("/search-result/unknown")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"message": "Result not found"})

        self.assertEqual(self.client.get("/total-searches").json(), {"totalSearches": 3})


class TestServerErrors(unittest.TestCase):

    def test_unexpected_failure_is_a_generic_500(self):
        client, db = make_client(raise_server_exceptions=False)

        def broken(*args, **kwargs):
            raise RuntimeError("disk on fire")

        db.find_applicants = broken
        resp = client.get("/result-stats")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"message": "Server Error"})


if __name__ == "__main__":
    unittest.main()
