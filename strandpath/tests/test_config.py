# strandpath/tests/test_config.py

from unittest import TestCase

import numpy as np

from strandpath.config import EarlyStopConfig, PathConfig, YarnStyle, hex_color


class ConfigTests(TestCase):
    def test_defaults(self):
        config = PathConfig()
        self.assertEqual(config.iterations, 4000)
        self.assertEqual(config.beam_width, 1)
        self.assertEqual(config.yarn, YarnStyle(1.0, 0.2, (0, 0, 0)))
        self.assertIsNone(config.early_stop.loss_threshold)
        self.assertEqual(config.early_stop.patience, 100)

    def test_yarn_validation(self):
        for kwargs in ({"width": 0}, {"width": -1}, {"opacity": 1.5},
                       {"opacity": -0.1}, {"color": (0, 0, 256)}, {"color": (0, 0)}):
            with self.assertRaises(ValueError, msg=str(kwargs)):
                YarnStyle(**kwargs)

    def test_yarn_hex(self):
        self.assertEqual(YarnStyle(color=(255, 0, 16)).hex, "#ff0010")
        self.assertEqual(hex_color((255, 0, 16)), "#ff0010")

    def test_path_config_validation(self):
        for kwargs in ({"iterations": 0}, {"beam_width": 0}, {"workers": 0},
                       {"start_peg_radius": -1}, {"skip_within": -2}):
            with self.assertRaises(ValueError, msg=str(kwargs)):
                PathConfig(**kwargs)

    def test_counts_must_be_integers(self):
        for kwargs in ({"iterations": 2.5}, {"beam_width": 2.0}, {"workers": "4"}, {"iterations": True}):
            with self.assertRaises(ValueError, msg=str(kwargs)):
                PathConfig(**kwargs)
        with self.assertRaises(ValueError):
            EarlyStopConfig(patience=1.5)
        self.assertEqual(PathConfig(iterations=np.int64(7)).iterations, 7)

    def test_early_stop_validation(self):
        with self.assertRaises(ValueError):
            EarlyStopConfig(loss_threshold=-1.0)
        with self.assertRaises(ValueError):
            EarlyStopConfig(patience=0)
        self.assertEqual(EarlyStopConfig(0.0, 1).loss_threshold, 0.0)
