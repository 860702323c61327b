import unittest

from contracts import Rect, TargetDetection
from metrics.impact import (
    ImpactConfig,
    ImpactDetector,
    ball_in_goal,
    circle_contact,
    closest_target,
    contacted_target,
    velocity_reversed,
)

GOAL = (100, 100, 200, 150)
TARGETS = [
    {"centerX": 150, "centerY": 140, "radius": 20, "targetNumber": 1, "isCircular": True, "quadrant": 1},
    {"centerX": 250, "centerY": 210, "radius": 20, "targetNumber": 2, "isCircular": True, "quadrant": 4},
]


def _ball(x, y, radius=8.0, vx=None, vy=None):
    ball = {"x": x, "y": y, "radius": radius, "trackId": 1}
    if vx is not None:
        ball["velocityX"] = vx
        ball["velocityY"] = vy
    return ball


class TestImpactHelpers(unittest.TestCase):
    def test_ball_in_goal_uses_radius_margin(self):
        goal = Rect(100, 100, 200, 150)
        self.assertTrue(ball_in_goal(150, 150, 5, goal))
        self.assertTrue(ball_in_goal(96, 150, 5, goal))
        self.assertFalse(ball_in_goal(90, 150, 5, goal))

    def test_circle_contact(self):
        self.assertTrue(circle_contact(0, 0, 5, 25, 0, 20))
        self.assertFalse(circle_contact(0, 0, 5, 26, 0, 20))
        self.assertTrue(circle_contact(0, 0, 5, 30, 0, 20, contact_factor=2.0))

    def test_velocity_reversed(self):
        self.assertTrue(velocity_reversed((-2.0, 0.0), (5.0, 0.0), 3.0))
        self.assertFalse(velocity_reversed((-2.0, 0.0), (2.0, 0.0), 3.0))
        self.assertFalse(velocity_reversed((5.0, 1.0), (5.0, 0.0), 3.0))
        self.assertFalse(velocity_reversed(None, (5.0, 0.0), 3.0))

    def test_contacted_target_prefers_deepest_overlap(self):
        targets = [
            {"centerX": 100, "centerY": 100, "radius": 2, "targetNumber": 1},
            {"centerX": 125, "centerY": 100, "radius": 20, "targetNumber": 2},
        ]
        self.assertEqual(contacted_target(105, 100, 5, targets)[3], 2)
        self.assertEqual(contacted_target(101, 100, 1, targets)[3], 1)
        self.assertIsNone(contacted_target(60, 100, 1, targets))

    def test_closest_target_accepts_dicts_and_dataclasses(self):
        target = TargetDetection(center_x=10, center_y=10, radius=5, target_number=7, is_circular=True, quadrant=1)
        self.assertEqual(closest_target(12, 12, [target] + TARGETS)[3], 7)
        self.assertEqual(closest_target(240, 200, TARGETS)[3], 2)
        self.assertIsNone(closest_target(0, 0, [{"bogus": 1}]))


class TestImpactDetector(unittest.TestCase):
    def setUp(self):
        self.detector = ImpactDetector(ImpactConfig(cooldown_frames=3))

    def test_missing_ball_is_not_impact(self):
        self.assertFalse(self.detector.check(None, TARGETS, GOAL).detected)
        self.assertFalse(self.detector.check({}, TARGETS, GOAL).detected)
        self.assertFalse(self.detector.check({"radius": 3}, TARGETS, GOAL).detected)
        self.assertEqual(self.detector.frame_index, 3)

    def test_ball_outside_goal_is_not_impact(self):
        result = self.detector.check(_ball(20, 20), TARGETS, GOAL)
        self.assertFalse(result.detected)
        self.assertEqual(result.reason, "outside_goal")

    def test_target_contact(self):
        result = self.detector.check(_ball(160, 150), TARGETS, GOAL)

        self.assertTrue(result.detected)
        self.assertEqual(result.reason, "target_contact")
        self.assertEqual(result.target_number, 1)
        self.assertEqual(self.detector.impact_count, 1)
        self.assertEqual(self.detector.last_target_hit, 1)
        self.assertEqual(self.detector.last_impact_position, (160.0, 150.0))

    def test_contact_with_large_target_behind_closer_centre(self):
        targets = [
            {"centerX": 100, "centerY": 100, "radius": 2, "targetNumber": 1},
            {"centerX": 125, "centerY": 100, "radius": 20, "targetNumber": 2},
        ]

        result = self.detector.check({"x": 110, "y": 100, "radius": 1}, targets, (0, 0, 300, 300))

        self.assertTrue(result.detected)
        self.assertEqual(result.reason, "target_contact")
        self.assertEqual(result.target_number, 2)

    def test_ball_in_goal_away_from_targets(self):
        self.assertFalse(self.detector.check(_ball(200, 120), TARGETS, GOAL).detected)

    def test_rebound_needs_previous_speed(self):
        ball = _ball(200, 120, vx=-4.0, vy=0.0)
        self.assertFalse(self.detector.check(ball, [], GOAL, previous_velocity=(1.0, 0.0)).detected)

        result = self.detector.check(ball, [], GOAL, previous_velocity=(6.0, 0.0))
        self.assertTrue(result.detected)
        self.assertEqual(result.reason, "rebound")
        self.assertIsNone(result.target_number)

    def test_cooldown_debounces(self):
        ball = _ball(160, 150)
        hits = [self.detector.check(ball, TARGETS, GOAL).detected for _ in range(5)]

        self.assertEqual(hits, [True, False, False, True, False])
        self.assertEqual(self.detector.impact_count, 2)
        self.assertEqual(self.detector.last_impact_frame, 4)

    def test_reset(self):
        self.detector.check(_ball(160, 150), TARGETS, GOAL)
        self.detector.reset()

        self.assertEqual(self.detector.impact_count, 0)
        self.assertIsNone(self.detector.last_impact_frame)
        self.assertEqual(self.detector.frame_index, 0)


if __name__ == "__main__":
    unittest.main()
