"""End-to-end tests for SBFAnalyzer on the analytic frame phantom."""

import json
import tempfile
import unittest
from pathlib import Path

from SBFCoordinates.analysis import SBFAnalyzer
from SBFCoordinates.verification import CheckResult
from tests.frame_phantom import FramePhantom, frame_point


class TestSBFAnalyzer(unittest.TestCase):
    def test_rejects_prone_images(self) -> None:
        with self.assertRaises(ValueError):
            SBFAnalyzer(FramePhantom(patient_position='HFP'))

    def test_accepts_feet_first_lowercase(self) -> None:
        SBFAnalyzer(FramePhantom(patient_position='ffs'))

    def test_rejects_objects_without_sampler(self) -> None:
        with self.assertRaises(TypeError):
            SBFAnalyzer(object())

    def test_transverse(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom())
        result = analyzer.run_transverse(frame_point())
        self.assertEqual(result['bottom'], 63.0)
        self.assertEqual((result['left'], result['right'], result['center']), (-221.0, 221.0, 0.0))
        self.assertTrue(result['vertical_confirmed'])
        self.assertIsNotNone(analyzer._lateral_locator)

    def test_transverse_rejected_width(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom(right_shift=3.0))
        result = analyzer.run_transverse(frame_point())
        self.assertIsNone(result['bottom'])
        self.assertEqual(result['width'], 445.0)
        self.assertIsNone(analyzer.run_longitudinal(frame_point(), result))

    def test_width_override(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom(right_shift=3.0), lateral_width=445.0)
        self.assertEqual(analyzer.run_transverse(frame_point())['bottom'], 63.0)

    def test_analyze_point(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom())
        entry = analyzer.analyze_point('iso', frame_point(x=10.0, vrt=75.0, z=230.0))
        self.assertEqual(entry['frame'], {'lat': 290, 'vrt': 75, 'lng': 230})
        self.assertEqual(entry['result'], 'found')
        self.assertIn('iso', analyzer.results)

    def test_user_origin_and_comparison(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom())
        result = analyzer.check_user_origin(frame_point(x=0.0, vrt=95.0, z=230.0))
        self.assertIs(result, CheckResult.FOUND)
        self.assertEqual(analyzer.origin_lng, 230)

        entry = analyzer.compare_point('iso', frame_point(x=10.0, vrt=75.0, z=199.0))
        self.assertEqual(entry['frame'], {'lat': 290, 'vrt': 75, 'lng': 199})
        self.assertTrue(entry['comparison']['agree'])
        self.assertEqual(entry['comparison']['from_origin'], {'lat': 290, 'vrt': 75, 'lng': 199})

    def test_compare_requires_origin(self) -> None:
        with self.assertRaises(ValueError):
            SBFAnalyzer(FramePhantom()).compare_point('iso', frame_point())

    def test_user_origin_off_index_point(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom())
        result = analyzer.check_user_origin(frame_point(x=0.0, vrt=110.0, z=230.0))
        self.assertIs(result, CheckResult.NOT_OK)
        entry = analyzer.compare_point('iso', frame_point(x=10.0, vrt=75.0, z=230.0))
        self.assertIsNone(entry['comparison']['agree'])

    def test_save_results_json(self) -> None:
        analyzer = SBFAnalyzer(FramePhantom())
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ValueError):
                analyzer.save_results_json(Path(tmp) / "empty.json")
            analyzer.analyze_point('iso', frame_point())
            out = analyzer.save_results_json(Path(tmp) / "sub" / "results.json")
            data = json.loads(out.read_text(encoding='utf-8'))
        self.assertEqual(data['iso']['frame']['vrt'], 95)
        self.assertEqual(data['iso']['transverse']['bottom'], 63.0)


if __name__ == "__main__":
    unittest.main()
