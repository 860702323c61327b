import unittest

from track.ball_tracker import BallTracker


class TestBallTracker(unittest.TestCase):
    """Velocity, track lifetime and statistics of the single-ball tracker."""

    def setUp(self):
        self.tracker = BallTracker(max_lost_frames=3, history_size=4)

    def test_first_observation_starts_track(self):
        state = self.tracker.update(10.0, 20.0, 5.0, frame_index=1)

        self.assertEqual(state.track_id, 1)
        self.assertTrue(state.is_tracking)
        self.assertEqual(state.velocity, (0.0, 0.0))
        self.assertIsNone(state.previous_velocity)

    def test_velocity_divides_by_elapsed_frames(self):
        self.tracker.update(10.0, 20.0, 5.0, frame_index=1)
        self.tracker.mark_missed(2)
        state = self.tracker.update(30.0, 10.0, 5.0, frame_index=3)

        self.assertEqual(state.velocity, (10.0, -5.0))
        self.assertEqual(state.previous_velocity, (0.0, 0.0))

    def test_predict_extrapolates(self):
        self.assertIsNone(self.tracker.predict())
        self.tracker.update(0.0, 0.0, 5.0, frame_index=1)
        self.tracker.update(4.0, 2.0, 5.0, frame_index=2)

        self.assertEqual(self.tracker.predict(), (8.0, 4.0))
        self.assertEqual(self.tracker.predict(frame_index=4), (12.0, 6.0))

    def test_history_is_bounded(self):
        for i in range(10):
            self.tracker.update(float(i), 0.0, 5.0, frame_index=i + 1)
        self.assertEqual(len(self.tracker.state().points), 4)

    def test_track_ends_after_max_lost_frames(self):
        self.tracker.update(10.0, 10.0, 5.0, frame_index=1)
        for frame in (2, 3):
            self.tracker.mark_missed(frame)
        self.assertTrue(self.tracker.state().is_tracking)

        self.tracker.mark_missed(4)
        state = self.tracker.state()
        self.assertFalse(state.is_tracking)
        self.assertIsNone(state.velocity)

        new_state = self.tracker.update(50.0, 50.0, 5.0, frame_index=5)
        self.assertEqual(new_state.track_id, 2)

    def test_statistics(self):
        self.tracker.update(0.0, 0.0, 5.0, frame_index=1)
        self.tracker.update(3.0, 4.0, 5.0, frame_index=2)
        self.tracker.update(3.0, 14.0, 5.0, frame_index=3)
        self.tracker.mark_missed(4)

        stats = self.tracker.statistics
        self.assertEqual(stats.frames_processed, 4)
        self.assertEqual(stats.frames_with_ball, 3)
        self.assertAlmostEqual(stats.detection_rate, 0.75)
        self.assertAlmostEqual(stats.average_speed, 7.5)
        self.assertAlmostEqual(stats.max_speed, 10.0)
        self.assertEqual(stats.consecutive_detections, 0)
        self.assertEqual(stats.lost_frames, 1)

    def test_reset_clears_counters_and_ids(self):
        self.tracker.update(0.0, 0.0, 5.0, frame_index=1)
        self.tracker.reset()

        self.assertEqual(self.tracker.statistics.frames_processed, 0)
        self.assertIsNone(self.tracker.track_id)
        self.assertEqual(self.tracker.update(1.0, 1.0, 5.0, frame_index=1).track_id, 1)


if __name__ == "__main__":
    unittest.main()
