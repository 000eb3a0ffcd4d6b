import base64
import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from luckydraw.api import create_app
from luckydraw.config import Settings
from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.models import Base, Category, DrawRecord, Participant


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        settings = Settings(
            database_url="sqlite+pysqlite:///:memory:",
            db_timeout=5,
            draw_lock_timeout=0.05,
            log_level="WARNING",
        )
        self.app = create_app(settings, session_factory=self.Session)
        self.client = self.app.test_client()

        with self.Session.begin() as session:
            category = Category(id="cat1", name="Staff")
            session.add(category)
            for i in range(3):
                session.add(Participant(name=f"Person {i}", category=category))

    def tearDown(self):
        self.engine.dispose()

    def test_draw_success(self):
        response = self.client.post(
            "/api/lottery-draw",
            json={"categoryId": "cat1", "prizeNames": ["Gold", "Silver"], "winnerCount": 3},
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["totalParticipants"], 3)
        self.assertEqual(body["categoryId"], "cat1")
        self.assertEqual(
            [w["prizeName"] for w in body["winners"]], ["Gold", "Silver", "Gold"]
        )
        self.assertEqual(len({w["lotteryDate"] for w in body["winners"]}), 1)
        self.assertEqual(len(body["lotteryRecords"]), 3)
        self.assertEqual(
            [r["participant_id"] for r in body["lotteryRecords"]],
            [w["id"] for w in body["winners"]],
        )

    def test_draw_stores_prize_labels_as_given(self):
        response = self.client.post(
            "/api/lottery-draw",
            json={"categoryId": "cat1", "prizeNames": [" Gold "], "winnerCount": 1},
        )
        body = response.get_json()
        self.assertEqual(body["winners"][0]["prizeName"], " Gold ")
        with self.Session() as session:
            self.assertEqual(
                [r.prize_name for r in DrawRecord.history(session)], [" Gold "]
            )

    def test_draw_insufficient_candidates(self):
        response = self.client.post(
            "/api/lottery-draw",
            json={"categoryId": "cat1", "prizeNames": ["Gold"], "winnerCount": 4},
        )
        self.assertEqual(response.status_code, 422)
        error = response.get_json()["error"]
        self.assertEqual(error["code"], "INSUFFICIENT_CANDIDATES")
        self.assertFalse(error["retryable"])
        with self.Session() as session:
            self.assertEqual(DrawRecord.history(session), [])

    def test_draw_validation_error(self):
        response = self.client.post(
            "/api/lottery-draw", json={"prizeNames": ["Gold"], "winnerCount": 1}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "CATEGORY_REQUIRED")

    def test_malformed_body(self):
        response = self.client.post(
            "/api/lottery-draw", data="not json", content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "INVALID_REQUEST")

    def test_import(self):
        response = self.client.post(
            "/api/import-participants",
            json={"csvData": 'Name,CategoryId\nJohn Doe,\n,cat1\n"Lee, Anna",cat1'},
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["imported"], 2)
        self.assertEqual(body["total"], 3)
        self.assertEqual(body["errors"], ["Line 3: name must not be empty"])
        self.assertEqual(
            [p["name"] for p in body["participants"]], ["John Doe", "Lee, Anna"]
        )

    def test_import_without_valid_rows(self):
        response = self.client.post(
            "/api/import-participants", json={"csvData": "Name\n,x"}
        )
        self.assertEqual(response.status_code, 422)
        error = response.get_json()["error"]
        self.assertEqual(error["code"], "NO_VALID_ROWS")
        self.assertEqual(error["details"], ["Line 2: name must not be empty"])

    def test_export(self):
        response = self.client.post("/api/export", json={"type": "participants"})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["filename"].startswith("participants_"))
        self.assertEqual(body["encoding"], "base64")
        text = base64.b64decode(body["content"]).decode("utf-8")
        self.assertTrue(text.startswith("\ufeff\"Name\""))
        self.assertEqual(len(text.splitlines()), 4)

    def test_export_unknown_type(self):
        response = self.client.post("/api/export", json={"type": "excel"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["error"]["code"], "UNSUPPORTED_EXPORT_TYPE"
        )

    def test_categories_include_active_counts(self):
        with self.Session.begin() as session:
            session.add(Category(id="cat2", name="Empty", is_active=False))
        body = self.client.get("/api/categories").get_json()
        counts = {c["id"]: c["active_participants"] for c in body["categories"]}
        self.assertEqual(counts, {"cat1": 3, "cat2": 0})
        active = self.client.get("/api/categories?active=true").get_json()
        self.assertEqual([c["id"] for c in active["categories"]], ["cat1"])

    def test_lottery_records_history(self):
        self.client.post(
            "/api/lottery-draw",
            json={"categoryId": "cat1", "prizeNames": ["Mug"], "winnerCount": 2},
        )
        body = self.client.get("/api/lottery-records?categoryId=cat1").get_json()
        self.assertEqual([r["position"] for r in body["lotteryRecords"]], [0, 1])
        other = self.client.get("/api/lottery-records?categoryId=nope").get_json()
        self.assertEqual(other["lotteryRecords"], [])

    def _assert_fetch_failed(self, response):
        self.assertEqual(response.status_code, 503)
        error = response.get_json()["error"]
        self.assertEqual(error["code"], "FETCH_FAILED")
        self.assertTrue(error["retryable"])
        self.assertIn("timeout", error["message"])

    def test_export_storage_failure(self):
        error = OperationalError("SELECT", {}, Exception("timeout"))
        with patch.object(Participant, "ordered", side_effect=error):
            response = self.client.post("/api/export", json={"type": "participants"})
        self._assert_fetch_failed(response)

    def test_history_storage_failure(self):
        error = OperationalError("SELECT", {}, Exception("timeout"))
        with patch.object(DrawRecord, "history", side_effect=error):
            response = self.client.get("/api/lottery-records")
        self._assert_fetch_failed(response)

    def test_categories_storage_failure(self):
        error = OperationalError("SELECT", {}, Exception("timeout"))
        with patch("sqlalchemy.orm.Session.execute", side_effect=error):
            response = self.client.get("/api/categories")
        self._assert_fetch_failed(response)

    def test_import_category_lookup_failure(self):
        error = OperationalError("SELECT", {}, Exception("timeout"))
        with patch.object(Category, "get", side_effect=error):
            response = self.client.post(
                "/api/import-participants",
                json={"csvData": "Name\nJohn", "categoryId": "cat1"},
            )
        self._assert_fetch_failed(response)
        with self.Session() as session:
            self.assertEqual(len(Participant.ordered(session)), 3)

    def test_import_commit_failure(self):
        error = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch("sqlalchemy.orm.SessionTransaction.commit", side_effect=error):
            response = self.client.post(
                "/api/import-participants", json={"csvData": "Name\nJohn"}
            )
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["error"]["code"], "PERSIST_FAILED")
        with self.Session() as session:
            self.assertEqual(len(Participant.ordered(session)), 3)

    def test_health(self):
        self.assertEqual(self.client.get("/api/health").get_json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
