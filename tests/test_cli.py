import shutil
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path
from unittest import mock

from typer.testing import CliRunner

from track_assist.cli import app
from track_assist.db import SQLiteEventStore
from track_assist.models import DailySummary, DayReport
from track_assist.reporting import format_duration, render_summary
from track_assist.server_runner import dashboard_url, run_dashboard
from track_assist.store import StoreError
from tests.fakes import event


class TestReporting(unittest.TestCase):
    def test_format_duration(self):
        self.assertEqual(format_duration(0), "00:00:00")
        self.assertEqual(format_duration(3725), "01:02:05")

    def test_render_summary(self):
        report = DayReport(
            total_seconds=600,
            apps=[DailySummary("Editor", 600, 100.0, "#FFFFFF")],
        )

        lines = render_summary(datetime(2024, 3, 4).date(), report)

        self.assertEqual(lines[0], "Summary for 2024-03-04")
        self.assertIn("Tracked time: 00:10:00", lines)
        self.assertIn("Editor", lines[-1])
        self.assertIn("100.0%", lines[-1])


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.tmpdir, ignore_errors=True)
        self.db_path = self.tmpdir / "activities.sqlite3"
        store = SQLiteEventStore(self.db_path)
        start = datetime(2024, 3, 4, 9, 0)
        store.append(event(start, "Editor", title="main.py"))
        store.append(event(start + timedelta(minutes=30), "Browser"))
        store.append(event(datetime.now() - timedelta(days=30), "Ancient"))
        store.close()
        self.runner = CliRunner()

    def test_summary(self):
        result = self.runner.invoke(
            app, ["summary", "--date", "2024-03-04", "--db", str(self.db_path)]
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Summary for 2024-03-04", result.output)
        self.assertIn("Editor", result.output)
        self.assertIn("00:30:00", result.output)

    def test_timeline(self):
        result = self.runner.invoke(
            app, ["timeline", "--date", "2024-03-04", "--db", str(self.db_path)]
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("09:00:00-09:30:00", result.output)
        self.assertIn("main.py", result.output)

    def test_empty_day(self):
        result = self.runner.invoke(
            app, ["summary", "--date", "2024-01-01", "--db", str(self.db_path)]
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No activity recorded", result.output)

    def test_prune(self):
        result = self.runner.invoke(app, ["prune", "--db", str(self.db_path)])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Removed 3 events.", result.output)

    def test_unopenable_database_exits_with_error(self):
        missing = self.tmpdir / "missing" / "x.sqlite3"

        for command in ["timeline", "summary", "prune"]:
            result = self.runner.invoke(app, [command, "--db", str(missing)])
            self.assertEqual(result.exit_code, 1, result.output)
            self.assertIn("Error: Cannot open activity database", result.output)
            self.assertNotIsInstance(result.exception, StoreError)

    def test_read_failure_exits_with_error(self):
        failure = StoreError("Failed to read activity events")
        with mock.patch.object(SQLiteEventStore, "query_range", side_effect=failure):
            for command in ["timeline", "summary"]:
                result = self.runner.invoke(
                    app, [command, "--date", "2024-03-04", "--db", str(self.db_path)]
                )
                self.assertEqual(result.exit_code, 1, result.output)
                self.assertIn("Error: Failed to read activity events", result.output)


class TestServerRunner(unittest.TestCase):
    def test_dashboard_url(self):
        self.assertEqual(dashboard_url("127.0.0.1", 8080), "http://127.0.0.1:8080/")
        self.assertEqual(dashboard_url("0.0.0.0", 9000), "http://127.0.0.1:9000/")
        self.assertEqual(dashboard_url("localhost", 80), "http://localhost:80/")

    def test_web_without_recording(self):
        db_path = Path("activities.sqlite3")
        with mock.patch("track_assist.server_runner.create_app") as create_app, mock.patch(
            "track_assist.server_runner.uvicorn.run"
        ) as serve:
            run_dashboard(port=9000, db_path=db_path, open_browser=False, record=False)

        self.assertEqual(create_app.call_args.kwargs["db_path"], db_path)
        self.assertFalse(create_app.call_args.kwargs["start_recorder"])
        serve.assert_called_once_with(
            create_app.return_value, host="127.0.0.1", port=9000, log_level="info"
        )


if __name__ == "__main__":
    unittest.main()
