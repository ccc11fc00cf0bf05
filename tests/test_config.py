from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import fakes  # noqa: F401  (puts src/ on sys.path)

from diagramlayout import DEFAULT_STYLES, Config, LayoutConfigError, parse_config


class ParseConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = Config()
        self.assertEqual((config.padding, config.spacing, config.gutter), (8.0, 40.0, 5.0))
        self.assertEqual((config.direction, config.acyclicer, config.ranker), ("TB", "greedy", "network-simplex"))
        self.assertFalse(config.align_top)

    def test_directives_override_base(self) -> None:
        base = Config(font_size=14.0)
        config = parse_config(
            {
                "direction": "right",
                "padding": "10",
                "edgeMargin": "2.5",
                "alignTop": "true",
                "ranker": "Longest-Path",
                "fill": "#fff",
            },
            base,
        )
        self.assertEqual(config.direction, "LR")
        self.assertEqual(config.padding, 10.0)
        self.assertEqual(config.edge_margin, 2.5)
        self.assertTrue(config.align_top)
        self.assertEqual(config.ranker, "longest-path")
        self.assertEqual(config.font_size, 14.0)
        self.assertEqual(base.padding, 8.0)

    def test_direction_aliases(self) -> None:
        expected = {"down": "TB", "up": "BT", "left": "RL", "right": "LR", "lr": "LR"}
        for raw, direction in expected.items():
            self.assertEqual(parse_config({"direction": raw}).direction, direction)

    def test_invalid_values(self) -> None:
        cases = [
            ({"padding": "wide"}, "E_CONFIG_NUMBER"),
            ({"spacing": "-4"}, "E_CONFIG_NUMBER"),
            ({"direction": "sideways"}, "E_CONFIG_DIRECTION"),
            ({"acyclicer": "random"}, "E_CONFIG_ENUM"),
            ({"engine": "neato"}, "E_CONFIG_ENUM"),
        ]
        for directives, code in cases:
            with self.assertRaises(LayoutConfigError) as ctx:
                parse_config(directives)
            self.assertEqual(ctx.exception.code, code, directives)


class StyleLookupTests(unittest.TestCase):
    def test_lookup_by_type_tag(self) -> None:
        config = Config()
        self.assertEqual(config.style_for("ACTOR").visual, "actor")
        self.assertEqual(config.style_for("usecase").visual, "ellipse")
        self.assertIs(config.style_for("WIDGET"), DEFAULT_STYLES["CLASS"])


if __name__ == "__main__":
    unittest.main()
