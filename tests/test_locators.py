"""Tests for the transverse locators on the analytic frame phantom."""

import unittest

from SBFCoordinates.bottom import BottomLocator
from SBFCoordinates.lateral import LateralBounds, LateralLocator, VerticalDoubleChecker
from tests.frame_phantom import FramePhantom, frame_point


class TestBottomLocator(unittest.TestCase):
    def test_datum_found_at_centre(self) -> None:
        locator = BottomLocator(FramePhantom(), frame_point())
        self.assertEqual(locator.locate(), 63.0)
        self.assertEqual(len(locator.profiles), 1)
        self.assertEqual(locator.matches, [64.0])

    def test_retry_left_of_centre(self) -> None:
        locator = BottomLocator(FramePhantom(hole=True), frame_point())
        self.assertEqual(locator.locate(), 63.0)
        self.assertEqual(locator.matches, [None, 64.0])
        self.assertEqual(locator.to_dict()['attempts'], 2)

    def test_not_found(self) -> None:
        # no frame at all in this slice: nothing above y = 99 to match
        class Empty(FramePhantom):
            def intensity(self, points):
                return super().intensity(points) * 0.0

        locator = BottomLocator(Empty(), frame_point())
        self.assertIsNone(locator.locate())
        self.assertEqual(len(locator.profiles), 3)


class TestLateralLocator(unittest.TestCase):
    def test_walls_and_width(self) -> None:
        locator = LateralLocator(FramePhantom(), frame_point())
        bounds = locator.locate(63.0)
        self.assertEqual(bounds, LateralBounds(-221.0, 221.0))
        self.assertEqual(bounds.center, 0.0)
        self.assertTrue(locator.validate(bounds))

    def test_width_outside_tolerance_rejected(self) -> None:
        locator = LateralLocator(FramePhantom(right_shift=3.0), frame_point())
        bounds = locator.locate(63.0)
        self.assertEqual(bounds.width, 445.0)
        self.assertFalse(locator.validate(bounds))

    def test_narrow_width_rejected(self) -> None:
        locator = LateralLocator(FramePhantom(right_shift=-3.0), frame_point())
        bounds = locator.locate(63.0)
        self.assertEqual(bounds, LateralBounds(-221.0, 218.0))
        self.assertEqual(bounds.width, 439.0)
        self.assertFalse(locator.validate(bounds))

    def test_width_at_tolerance_accepted(self) -> None:
        locator = LateralLocator(FramePhantom(right_shift=2.0), frame_point())
        self.assertTrue(locator.validate(locator.locate(63.0)))

    def test_expected_width_override(self) -> None:
        locator = LateralLocator(FramePhantom(right_shift=3.0), frame_point(),
                                 expected_width=445.0, width_tolerance=1.0)
        self.assertTrue(locator.validate(locator.locate(63.0)))

    def test_missing_bounds_invalid(self) -> None:
        self.assertFalse(LateralLocator(FramePhantom(), frame_point()).validate(None))


class TestVerticalDoubleChecker(unittest.TestCase):
    def test_confirms_true_bottom(self) -> None:
        checker = VerticalDoubleChecker(FramePhantom(), frame_point())
        self.assertTrue(checker.check(63.0))
        self.assertEqual(checker.bounds.width, 348.0)

    def test_rejects_wrong_bottom(self) -> None:
        # 30 mm too low: the profile passes below the sloped walls
        checker = VerticalDoubleChecker(FramePhantom(), frame_point())
        self.assertFalse(checker.check(93.0))


if __name__ == "__main__":
    unittest.main()
