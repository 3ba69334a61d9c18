"""
Unit tests for record parsing, the config store and the database manager
"""

import unittest

from upokari.analytics.band_config import Band, BandConfigSet, GradeBandConfig
from upokari.analytics.config_store import get_band_config, set_band_config
from upokari.analytics.records import (
    ApplicantResultRecord,
    coerce_score,
    latest_result_details,
    records_from_documents,
    total_searches,
)
from upokari.database.db_manager import DatabaseManager
from upokari.database.models import Applicant


class TestRecords(unittest.TestCase):

    def test_from_stored_document(self):
        rec = ApplicantResultRecord.from_document({
            "scholarshipRollNumber": "DMS2601",
            "institute": "Dhaka Model School",
            "instituteClass": "Four",
            "isAttendanceComplete": True,
            "resultDetails": {"marks": "35.5", "courseFund": 500},
            "searchCount": 4,
        })
        self.assertEqual(rec.roll_number, "DMS2601")
        self.assertEqual(rec.grade_raw, "Four")
        self.assertTrue(rec.attendance_complete)
        self.assertEqual(rec.score, 35.5)
        self.assertEqual(rec.search_count, 4)
        self.assertTrue(rec.has_result)

    def test_messy_values(self):
        rec = ApplicantResultRecord.from_document({
            "scholarshipRollNumber": "DMS2602",
            "isAttendanceComplete": "yes",
            "resultDetails": {"marks": "absent"},
            "searchCount": None,
        })
        self.assertFalse(rec.attendance_complete)
        self.assertIsNone(rec.score)
        self.assertEqual(rec.search_count, 0)
        self.assertFalse(rec.has_result)

    def test_list_shaped_result_details_uses_last_entry(self):
        rec = ApplicantResultRecord.from_document({
            "scholarshipRollNumber": "DMS2603",
            "isAttendanceComplete": True,
            "resultDetails": [{"marks": 12}, {"marks": 40, "courseFund": 200}],
        })
        self.assertEqual(rec.score, 40.0)
        self.assertTrue(rec.has_result)
        self.assertEqual(latest_result_details([]), None)
        self.assertEqual(latest_result_details(["junk", {"marks": 5}, None]), {"marks": 5})
        self.assertIsNone(latest_result_details("40"))

    def test_coerce_score(self):
        self.assertEqual(coerce_score(40), 40.0)
        self.assertEqual(coerce_score(" 12 "), 12.0)
        for bad in (None, True, "", "n/a", float("nan"), "inf"):
            self.assertIsNone(coerce_score(bad))

    def test_total_searches_treats_missing_as_zero(self):
        records = records_from_documents([
            {"scholarshipRollNumber": "1", "searchCount": 3},
            {"scholarshipRollNumber": "2"},
            {"scholarshipRollNumber": "3", "searchCount": None},
            {"scholarshipRollNumber": "4", "searchCount": 0},
            {"scholarshipRollNumber": "5", "searchCount": 7},
        ])
        self.assertEqual(total_searches(records), 10)
        self.assertEqual(total_searches([]), 0)


class TestBandConfig(unittest.TestCase):

    def test_thresholds(self):
        cfg = GradeBandConfig(total_marks=45, pass_percent=40, high_marks_percent=70, got75_percent=75)
        self.assertAlmostEqual(cfg.pass_threshold, 18.0)
        self.assertAlmostEqual(cfg.high_marks_threshold, 31.5)
        self.assertAlmostEqual(cfg.got75_threshold, 33.75)

    def test_merge_ignores_non_numeric(self):
        cfg = BandConfigSet().lower.merged({"passPercent": 50, "totalMarks": "abc", "got75Percent": None})
        self.assertEqual(cfg.pass_percent, 50)
        self.assertEqual(cfg.total_marks, 45)
        self.assertEqual(cfg.got75_percent, 75)

    def test_from_dict_defaults(self):
        cfg = BandConfigSet.from_dict({"upper": {"totalMarks": 80}})
        self.assertEqual(cfg.upper.total_marks, 80)
        self.assertEqual(cfg.upper.high_marks_percent, 60)
        self.assertEqual(cfg.lower, BandConfigSet().lower)

    def test_band_of_grade(self):
        self.assertIs(Band.of_grade("three"), Band.LOWER)
        self.assertIs(Band.of_grade("9"), Band.UPPER)
        self.assertIs(Band.of_grade(None), Band.UPPER)


class TestConfigStore(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager("sqlite://")
        self.db.init_db()

    def test_defaults_when_nothing_stored(self):
        cfg = get_band_config(self.db)
        self.assertEqual(cfg.to_dict(), {
            "lower": {"totalMarks": 45, "passPercent": 40, "highMarksPercent": 70, "got75Percent": 75},
            "upper": {"totalMarks": 100, "passPercent": 40, "highMarksPercent": 60, "got75Percent": 75},
        })

    def test_partial_updates_merge(self):
        set_band_config(self.db, Band.LOWER, {"passPercent": 50})
        set_band_config(self.db, Band.LOWER, {"totalMarks": 50})
        cfg = get_band_config(self.db)
        self.assertEqual(cfg.lower.pass_percent, 50)
        self.assertEqual(cfg.lower.total_marks, 50)
        self.assertEqual(cfg.lower.high_marks_percent, 70)
        self.assertEqual(cfg.upper, BandConfigSet().upper)


class TestDatabaseManager(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager("sqlite://")
        self.db.init_db()
        self.db.save_applicant({
            "scholarshipRollNumber": "DMS2601",
            "institute": "Dhaka Model School",
            "instituteClass": 4,
            "isAttendanceComplete": True,
        })
        self.db.save_applicant({"scholarshipRollNumber": "DMS2602", "instituteClass": "7"})

    def test_find_with_filter(self):
        self.assertEqual(len(self.db.find_applicants()), 2)
        found = self.db.find_applicants({"instituteClass": "4"})
        self.assertEqual([d["scholarshipRollNumber"] for d in found], ["DMS2601"])

    def test_result_lifecycle(self):
        self.assertIsNone(self.db.add_result("missing", {"marks": 10}))
        self.assertFalse(self.db.update_course_fund("DMS2601", 100))
        self.assertFalse(self.db.add_result("DMS2601", {"marks": 30}))
        self.assertTrue(self.db.add_result("DMS2601", {"marks": 35}))
        self.assertTrue(self.db.update_course_fund("DMS2601", 100))

        doc = self.db.get_applicant("DMS2601")
        self.assertEqual(doc["resultDetails"], {"marks": 35, "courseFund": 100})

        self.assertTrue(self.db.delete_result("DMS2601"))
        self.assertFalse(self.db.delete_result("DMS2601"))
        self.assertIsNone(self.db.get_applicant("DMS2601")["resultDetails"])

    def test_list_shaped_result_details_import(self):
        self.db.save_applicant({
            "scholarshipRollNumber": "DMS2603",
            "isAttendanceComplete": True,
            "resultDetails": [{"marks": 40}],
        })
        doc = self.db.get_applicant("DMS2603")
        self.assertEqual(doc["resultDetails"], {"marks": 40})
        records = records_from_documents(self.db.find_applicants({"scholarshipRollNumber": "DMS2603"}))
        self.assertEqual(records[0].score, 40.0)
        self.assertTrue(self.db.update_course_fund("DMS2603", 300))
        self.assertEqual(self.db.get_applicant("DMS2603")["resultDetails"], {"marks": 40, "courseFund": 300})

    def test_course_fund_on_stored_list_details(self):
        with self.db._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number="DMS2602").first()
            applicant.result_details = [{"marks": 20}, {"marks": 55}]
            s.commit()
        self.assertTrue(self.db.update_course_fund("DMS2602", 150))
        self.assertEqual(
            self.db.get_applicant("DMS2602")["resultDetails"], {"marks": 55, "courseFund": 150}
        )

    def test_search_counter(self):
        self.assertEqual(self.db.get_total_searches(), 0)
        self.db.increment_search_count("DMS2601")
        doc = self.db.increment_search_count("DMS2601")
        self.db.increment_search_count("DMS2602")
        self.assertEqual(doc["searchCount"], 2)
        self.assertIsNone(self.db.increment_search_count("missing"))
        self.assertEqual(self.db.get_total_searches(), 3)
        records = records_from_documents(self.db.find_applicants())
        self.assertEqual(total_searches(records), self.db.get_total_searches())


if __name__ == "__main__":
    unittest.main()
