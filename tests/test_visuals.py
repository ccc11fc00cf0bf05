from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import fakes  # noqa: F401  (puts src/ on sys.path)

from diagramlayout import Classifier, Compartment, Config
from diagramlayout.visuals import VISUALS, visual_for


def _classifier(*sizes) -> Classifier:
    compartments = [Compartment(width=w, height=h) for w, h in sizes]
    return Classifier(type="CLASS", name="n", compartments=compartments)


class VisualTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = Config()

    def test_every_default_style_has_a_visual(self) -> None:
        for name, style in self.config.styles.items():
            self.assertIn(style.visual, VISUALS, name)

    def test_unknown_visual_falls_back_to_box(self) -> None:
        self.assertIs(visual_for("cloud"), VISUALS["class"])

    def test_box_stacks_compartments(self) -> None:
        clas = _classifier((30, 10), (50, 20), (20, 5))
        visual_for("package").layout(self.config, clas)
        self.assertEqual((clas.width, clas.height), (50, 35))
        self.assertEqual([c.y for c in clas.compartments], [0, 10, 30])
        self.assertEqual([c.width for c in clas.compartments], [50, 50, 50])
        self.assertEqual([(a.y, b.x) for a, b in clas.dividers], [(10, 50), (30, 50)])

    def test_actor_leaves_room_for_figure(self) -> None:
        clas = _classifier((10, 20))
        visual_for("actor").layout(self.config, clas)
        self.assertEqual((clas.width, clas.height), (16, 44))
        self.assertEqual((clas.compartments[0].x, clas.compartments[0].y), (3, 24))
        self.assertEqual(clas.dividers, [])

    def test_database_adds_cap(self) -> None:
        clas = _classifier((40, 20), (40, 10))
        visual_for("database").layout(self.config, clas)
        self.assertEqual((clas.width, clas.height), (40, 46))
        self.assertEqual(clas.compartments[0].y, 12)
        self.assertEqual(len(clas.dividers), 1)

    def test_rhomb_and_ellipse_scale_content(self) -> None:
        rhomb = _classifier((40, 20))
        visual_for("rhomb").layout(self.config, rhomb)
        self.assertEqual((rhomb.width, rhomb.height), (60, 30))

        ellipse = _classifier((40, 20), (40, 20))
        visual_for("ellipse").layout(self.config, ellipse)
        self.assertEqual((ellipse.width, ellipse.height), (50, 50))
        (left, right), = ellipse.dividers
        self.assertEqual(left.y, right.y)
        self.assertGreater(left.x, right.x)

    def test_icons_ignore_content(self) -> None:
        for name in ("start", "end"):
            clas = _classifier((400, 200))
            visual_for(name).layout(self.config, clas)
            self.assertEqual((clas.width, clas.height), (30, 30))

    def test_sync_bar_lies_across_rank_direction(self) -> None:
        clas = _classifier()
        visual_for("sync").layout(self.config, clas)
        self.assertEqual((clas.width, clas.height), (60, 9))

        visual_for("sync").layout(Config(direction="LR"), clas)
        self.assertEqual((clas.width, clas.height), (9, 60))


if __name__ == "__main__":
    unittest.main()
