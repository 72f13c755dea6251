"""Tests for the Lng reading combinator and the longitudinal locator."""

import unittest

from SBFCoordinates.longitudinal import (
    LongitudinalLocator,
    LongitudinalReading,
    SideReading,
    combine_readings,
)
from tests.frame_phantom import FramePhantom, frame_point


def reading(left_ticks, left_offset, right_ticks=None, right_offset=None):
    right_ticks  = left_ticks if right_ticks is None else right_ticks
    right_offset = left_offset if right_offset is None else right_offset
    return LongitudinalReading(SideReading(left_ticks, left_offset), SideReading(right_ticks, right_offset))


class TestCombineReadings(unittest.TestCase):
    def test_consistent_primary(self) -> None:
        self.assertEqual(combine_readings(reading(2, 30.0)), 230.0)

    def test_offsets_averaged(self) -> None:
        self.assertEqual(combine_readings(reading(2, 30.0, 2, 31.0)), 230.5)

    def test_shifted_readings_averaged(self) -> None:
        primary = reading(1, 95.0, 2, 5.0)     # tick counts disagree
        plus    = reading(2, 9.0)              # 209
        minus   = reading(1, 89.0)             # 189
        self.assertEqual(combine_readings(primary, plus, minus), 199.0)

    def test_shift_spread_outside_window(self) -> None:
        primary = reading(1, 95.0, 2, 5.0)
        plus    = reading(2, 9.0)              # 209
        minus   = reading(1, 84.0)             # 184, 25 apart
        self.assertIsNone(combine_readings(primary, plus, minus))

    def test_shift_window_is_open(self) -> None:
        primary = reading(1, 98.0)
        self.assertIsNone(combine_readings(primary, reading(2, 8.0), reading(1, 86.0)))
        self.assertEqual(combine_readings(primary, reading(2, 8.0), reading(1, 87.0)), 197.5)

    def test_large_offset_needs_shift(self) -> None:
        primary = reading(1, 98.0)
        self.assertIsNone(combine_readings(primary))
        self.assertEqual(combine_readings(primary, reading(2, 8.0), reading(1, 88.0)), 198.0)

    def test_missing_or_zero_offset_not_trusted(self) -> None:
        self.assertIsNone(combine_readings(reading(2, None, 2, 30.0)))
        self.assertIsNone(combine_readings(reading(2, 0.0, 2, 30.0)))
        self.assertIsNone(reading(2, None, 2, 30.0).coordinate())

    def test_shifted_sides_must_agree(self) -> None:
        primary = reading(1, 95.0, 2, 5.0)
        plus    = reading(2, 9.0, 2, 11.0)     # offsets 2 apart
        minus   = reading(1, 89.0)
        self.assertIsNone(combine_readings(primary, plus, minus))

    def test_shifted_ticks_must_agree(self) -> None:
        primary = reading(1, 95.0, 2, 5.0)
        plus    = reading(2, 9.0, 1, 9.0)
        self.assertIsNone(combine_readings(primary, plus, reading(1, 89.0)))


class TestLongitudinalLocator(unittest.TestCase):
    def _locator(self, z):
        point = frame_point(z=z)
        return LongitudinalLocator(FramePhantom(), point, bottom=63.0, left=-221.0, right=221.0)

    def test_direct_reading(self) -> None:
        locator = self._locator(230.0)
        self.assertAlmostEqual(locator.locate(), 230.0)
        primary = locator.readings['+0']
        self.assertEqual((primary.left.ticks, primary.right.ticks), (2, 2))
        self.assertAlmostEqual(primary.left.offset, 30.0)
        self.assertEqual(list(locator.readings), ['+0'])

    def test_rod_alignment(self) -> None:
        locator = self._locator(230.0)
        locator.locate()
        (start, end) = locator.lines['left']['upper']
        self.assertAlmostEqual(start[0], -217.9)
        self.assertAlmostEqual(end[0], -217.9)
        self.assertAlmostEqual(locator.lines['right']['lower'][0][0], 217.9)

    def test_decimeter_boundary_corrected(self) -> None:
        locator = self._locator(199.0)
        self.assertAlmostEqual(locator.locate(), 199.0)
        self.assertEqual(set(locator.readings), {'+0', '+10', '-10'})
        self.assertAlmostEqual(locator.readings['+10'].coordinate(), 209.0)
        self.assertAlmostEqual(locator.readings['-10'].coordinate(), 189.0)

    def test_rods_not_found(self) -> None:
        locator = LongitudinalLocator(FramePhantom(), frame_point(), bottom=63.0, left=-150.0, right=150.0)
        self.assertIsNone(locator.locate())
        self.assertEqual(locator.to_dict()['lng_mm'], None)


if __name__ == "__main__":
    unittest.main()
