import unittest

from panostitch.utils.progress import ProgressEvent, ProgressLog


class ProgressLogTests(unittest.TestCase):
    def test_events_kept_in_order(self):
        progress = ProgressLog()
        progress.emit("features", "found 10 and 12 keypoints")
        progress.emit("matching", "8 good matches")
        self.assertEqual(progress.stages(), ["features", "matching"])
        self.assertEqual(len(progress), 2)
        self.assertIsInstance(progress.events[0], ProgressEvent)

    def test_listener_called_per_event(self):
        seen = []
        event = ProgressLog(seen.append).emit("crop", "700x300px")
        self.assertEqual(seen, [event])

    def test_events_are_logged(self):
        with self.assertLogs("panostitch.utils.progress", level="INFO") as logs:
            ProgressLog().emit("canvas", "700x300px (side: right)")
        self.assertIn("canvas: 700x300px (side: right)", logs.output[0])

    def test_event_str_has_stage_and_detail(self):
        text = str(ProgressEvent("blend", "feathered 10 overlap pixels", 0.0))
        self.assertTrue(text.startswith("["))
        self.assertTrue(text.endswith("blend: feathered 10 overlap pixels"))


if __name__ == "__main__":
    unittest.main()
