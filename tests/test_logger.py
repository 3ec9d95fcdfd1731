import json
import unittest
from unittest.mock import patch

from planner import logger as events
from tests.helpers import quiet_event_log


class SessionEventLogTests(unittest.TestCase):
    def setUp(self):
        self.path = quiet_event_log(self)

    def test_record_appends_json_line_for_session(self):
        log = events.SessionEventLog("trip-7")
        log.record(events.STOP_ADDED, source="click", stop_id=1, position=(41.99, 21.42))

        record = json.loads(self.path.read_text(encoding="utf-8").strip())
        self.assertEqual(record["session_id"], "trip-7")
        self.assertEqual(record["event"], "stop_added")
        self.assertEqual(record["data"], {"source": "click", "stop_id": 1, "position": [41.99, 21.42]})

    def test_read_only_returns_own_session(self):
        mine = events.SessionEventLog("mine")
        other = events.SessionEventLog("other")
        mine.record(events.ROUTE_DISPATCHED, generation=1)
        other.record(events.ROUTE_FAILED, generation=1)
        mine.record(events.ROUTE_APPLIED, generation=1, points=12)

        self.assertEqual([r["event"] for r in mine.read()], ["route_dispatched", "route_applied"])

    def test_unknown_event_is_rejected(self):
        with self.assertRaises(ValueError):
            events.SessionEventLog("trip").record("route_teleported")

    def test_write_failure_is_ignored(self):
        with patch("planner.logger.LOG_PATH", self.path.parent):
            events.SessionEventLog("trip").record(events.SEARCH_FAILED, query="Atlantis")
            self.assertEqual(events.SessionEventLog("trip").read(), [])


if __name__ == "__main__":
    unittest.main()
