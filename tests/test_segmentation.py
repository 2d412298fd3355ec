import unittest
from datetime import datetime, timedelta

from track_assist.colors import color_for_app
from track_assist.models import IDLE_APP_NAME, IDLE_COLOR, EventType
from track_assist.segmentation import build_timeline
from tests.fakes import event


DAY = datetime(2024, 3, 4)


def at(hour: int, minute: int, second: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute, second=second)


class TestBuildTimeline(unittest.TestCase):
    def setUp(self):
        self.now = at(23, 0)

    def build(self, events, **kwargs):
        return build_timeline(events, now=lambda: self.now, **kwargs)

    def assert_well_formed(self, segments):
        for segment in segments:
            self.assertGreater(segment.duration_seconds, 0)
            self.assertGreaterEqual(segment.end_time, segment.start_time)
        for earlier, later in zip(segments, segments[1:]):
            self.assertLessEqual(earlier.start_time, later.start_time)
            self.assertLessEqual(earlier.end_time, later.start_time)

    def test_empty_day(self):
        self.assertEqual(self.build([]), [])

    def test_worked_example(self):
        segments = self.build(
            [
                event(at(9, 0), "A"),
                event(at(9, 1), "A", EventType.HEARTBEAT, title="x"),
                event(at(9, 5), "B"),
                event(at(9, 10), "B", EventType.IDLE_START, is_idle=True),
                event(at(9, 15), "B", EventType.IDLE_END),
                event(at(9, 15), "B"),
            ]
        )

        summary = [
            (s.app_name, s.start_time, s.end_time, s.duration_seconds) for s in segments
        ]
        self.assertEqual(
            summary,
            [
                ("A", at(9, 0), at(9, 5), 300),
                ("B", at(9, 5), at(9, 10), 300),
                (IDLE_APP_NAME, at(9, 10), at(9, 15), 300),
                ("B", at(9, 15), at(9, 16), 60),
            ],
        )
        self.assertEqual(segments[0].window_titles, ("x",))
        self.assertEqual(segments[0].bundle_id, "com.example.a")
        self.assert_well_formed(segments)

    def test_titles_are_merged_sorted_and_unique(self):
        segments = self.build(
            [
                event(at(10, 0), "Editor", title="notes.txt"),
                event(at(10, 1), "Editor", title="main.py"),
                event(at(10, 2), "Editor", EventType.HEARTBEAT, title="notes.txt"),
                event(at(10, 3), "Editor", EventType.HEARTBEAT),
                event(at(10, 4), "Browser", title="docs"),
            ]
        )

        self.assertEqual(segments[0].app_name, "Editor")
        self.assertEqual(segments[0].window_titles, ("main.py", "notes.txt"))
        self.assertEqual(segments[0].end_time, at(10, 4))

    def test_returning_to_an_app_starts_a_new_segment(self):
        segments = self.build(
            [
                event(at(10, 0), "Editor"),
                event(at(10, 5), "Browser"),
                event(at(10, 7), "Editor"),
            ]
        )

        self.assertEqual([s.app_name for s in segments], ["Editor", "Browser", "Editor"])
        self.assert_well_formed(segments)

    def test_zero_length_segments_are_dropped(self):
        segments = self.build(
            [
                event(at(11, 0), "Editor"),
                event(at(11, 0), "Browser"),
                event(at(11, 2), "Terminal"),
            ]
        )

        self.assertEqual([s.app_name for s in segments], ["Browser", "Terminal"])

    def test_idle_segment_shape(self):
        segments = self.build(
            [
                event(at(12, 0), "Editor"),
                event(at(12, 10), "Editor", EventType.IDLE_START, is_idle=True),
                event(at(12, 30), "Editor", EventType.IDLE_END),
                event(at(12, 30), "Editor"),
            ]
        )

        idle = segments[1]
        self.assertTrue(idle.is_idle)
        self.assertEqual(idle.app_name, IDLE_APP_NAME)
        self.assertEqual(idle.window_titles, ())
        self.assertEqual(idle.color, IDLE_COLOR)
        self.assertIsNone(idle.bundle_id)
        self.assertEqual(idle.duration_seconds, 20 * 60)
        self.assertFalse(segments[0].is_idle)
        self.assertEqual(segments[0].color, color_for_app("Editor"))

    def test_activity_inside_idle_window_is_ignored(self):
        segments = self.build(
            [
                event(at(13, 0), "Editor"),
                event(at(13, 5), "Editor", EventType.IDLE_START, is_idle=True),
                event(at(13, 6), "Browser", title="news"),
                event(at(13, 7), "Editor", EventType.HEARTBEAT),
                event(at(13, 9), "Editor", EventType.IDLE_END),
                event(at(13, 9), "Editor"),
            ]
        )

        self.assertEqual([s.app_name for s in segments], ["Editor", IDLE_APP_NAME, "Editor"])
        self.assertNotIn("news", segments[2].window_titles)
        self.assert_well_formed(segments)

    def test_events_flagged_idle_are_ignored(self):
        segments = self.build(
            [
                event(at(7, 0), "Editor", title="draft", is_idle=True),
                event(at(7, 5), "Browser"),
            ]
        )

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].app_name, "Browser")

    def test_idle_end_without_start_is_harmless(self):
        segments = self.build(
            [
                event(at(8, 0), "Editor"),
                event(at(8, 3), "Editor", EventType.IDLE_END),
            ]
        )

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].end_time, at(8, 4))

    def test_repeated_idle_start_restarts_the_idle_window(self):
        segments = self.build(
            [
                event(at(9, 0), "A"),
                event(at(9, 10), "A", EventType.IDLE_START, is_idle=True),
                event(at(9, 20), "A", EventType.IDLE_START, is_idle=True),
                event(at(9, 30), "A", EventType.IDLE_END),
            ]
        )

        self.assertEqual(
            [(s.app_name, s.start_time, s.end_time) for s in segments],
            [
                ("A", at(9, 0), at(9, 10)),
                (IDLE_APP_NAME, at(9, 20), at(9, 30)),
            ],
        )
        self.assert_well_formed(segments)

    def test_open_idle_window_closes_at_now(self):
        self.now = at(14, 30)
        segments = self.build(
            [
                event(at(14, 0), "Editor"),
                event(at(14, 10), "Editor", EventType.IDLE_START, is_idle=True),
            ]
        )

        self.assertEqual(segments[-1].app_name, IDLE_APP_NAME)
        self.assertEqual(segments[-1].start_time, at(14, 10))
        self.assertEqual(segments[-1].end_time, at(14, 30))

    def test_open_tail_uses_configured_pad(self):
        segments = self.build(
            [event(at(15, 0), "Editor"), event(at(15, 1), "Editor", EventType.HEARTBEAT)],
            tail_pad=timedelta(seconds=30),
        )

        self.assertEqual(segments[0].end_time, at(15, 1, 30))

    def test_same_input_gives_same_output(self):
        events = [
            event(at(9, 0), "A"),
            event(at(9, 3), "B"),
            event(at(9, 4), "B", EventType.IDLE_START, is_idle=True),
        ]

        self.assertEqual(self.build(events), self.build(events))

    def test_long_day_is_ordered_and_non_overlapping(self):
        apps = ["Editor", "Browser", "Terminal", "Mail"]
        events = []
        cursor = at(6, 0)
        for index in range(200):
            app = apps[(index * 7) % len(apps)]
            kind = EventType.HEARTBEAT if index % 3 == 0 else EventType.CHANGE
            events.append(event(cursor, app, kind, title=f"tab {index % 5}"))
            if index % 25 == 24:
                events.append(event(cursor, app, EventType.IDLE_START, is_idle=True))
                cursor += timedelta(minutes=6)
                events.append(event(cursor, app, EventType.IDLE_END))
            cursor += timedelta(seconds=17 * (index % 4))

        segments = self.build(events)

        self.assertTrue(segments)
        self.assert_well_formed(segments)


if __name__ == "__main__":
    unittest.main()
