"""Visual sizing strategies, registered by visual name.

Each strategy turns the already measured compartments of a classifier into
the classifier's final width and height, places the compartments inside it
(``Compartment.x``/``y`` relative to the classifier's top-left corner) and
records the divider segments drawn between compartments.
"""
from __future__ import annotations

import math
from typing import Dict, List

from .config import Config
from .model import Classifier, Compartment, Point

VISUALS: Dict[str, "Visual"] = {}


def register_visual(*names: str):
    def _register(cls):
        instance = cls()
        for name in names:
            VISUALS[name] = instance
        return cls

    return _register


def visual_for(name: str) -> "Visual":
    return VISUALS.get(name) or VISUALS["class"]


def _max_width(compartments: List[Compartment]) -> float:
    return max((c.width for c in compartments), default=0.0)


def _total_height(compartments: List[Compartment]) -> float:
    return sum(c.height for c in compartments)


class Visual:
    def layout(self, config: Config, clas: Classifier) -> None:
        raise NotImplementedError


@register_visual(
    "class",
    "frame",
    "input",
    "none",
    "note",
    "package",
    "receiver",
    "reference",
    "roundrect",
    "sender",
    "transceiver",
)
class BoxVisual(Visual):
    """Compartments stacked top to bottom at full width."""

    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = _max_width(clas.compartments)
        clas.height = _total_height(clas.compartments)
        clas.dividers = []
        y = 0.0
        last = len(clas.compartments) - 1
        for i, comp in enumerate(clas.compartments):
            comp.x = 0.0
            comp.y = y
            comp.width = clas.width
            y += comp.height
            if i != last:
                clas.dividers.append((Point(0.0, y), Point(clas.width, y)))


@register_visual("hidden")
class HiddenVisual(Visual):
    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = 1.0
        clas.height = 1.0
        clas.dividers = []
        for comp in clas.compartments:
            comp.x = 0.0
            comp.y = 0.0


@register_visual("actor")
class ActorVisual(Visual):
    """Stick figure on top, compartments centered below it."""

    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = max(config.padding * 2, _max_width(clas.compartments))
        clas.height = config.padding * 3 + _total_height(clas.compartments)
        clas.dividers = []
        y = config.padding * 3
        for comp in clas.compartments:
            comp.x = clas.width / 2.0 - comp.width / 2.0
            comp.y = y
            y += comp.height


@register_visual("database")
class DatabaseVisual(Visual):
    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = _max_width(clas.compartments)
        clas.height = _total_height(clas.compartments) + config.padding * 2
        clas.dividers = []
        y = config.padding * 1.5
        last = len(clas.compartments) - 1
        for i, comp in enumerate(clas.compartments):
            comp.x = 0.0
            comp.y = y
            comp.width = clas.width
            y += comp.height
            if i != last:
                clas.dividers.append((Point(0.0, y), Point(clas.width, y)))


@register_visual("rhomb")
class DiamondVisual(Visual):
    def layout(self, config: Config, clas: Classifier) -> None:
        width = _max_width(clas.compartments)
        height = _total_height(clas.compartments)
        clas.width = width * 1.5
        clas.height = height * 1.5
        clas.dividers = []
        y = height * 0.25
        for comp in clas.compartments:
            comp.x = clas.width / 2.0 - comp.width / 2.0
            comp.y = y
            y += comp.height


@register_visual("ellipse")
class EllipseVisual(Visual):
    """Compartments inside an ellipse; dividers end on the rim."""

    def layout(self, config: Config, clas: Classifier) -> None:
        width = _max_width(clas.compartments)
        height = _total_height(clas.compartments)
        clas.width = width * 1.25
        clas.height = height * 1.25
        clas.dividers = []

        def rim(at_y: float) -> float:
            if not clas.height:
                return 0.0
            rel = at_y / clas.height - 0.5
            return math.sqrt(max(0.0, 0.25 - rel * rel)) * clas.width

        y = height * 0.125
        last = len(clas.compartments) - 1
        for i, comp in enumerate(clas.compartments):
            comp.x = clas.width / 2.0 - comp.width / 2.0
            comp.y = y
            y += comp.height
            if i != last:
                half = rim(y)
                clas.dividers.append(
                    (Point(clas.width / 2.0 + half - 1, y), Point(clas.width / 2.0 - half + 1, y))
                )


@register_visual("start", "end")
class IconVisual(Visual):
    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = config.font_size * 2.5
        clas.height = config.font_size * 2.5
        clas.dividers = []
        for comp in clas.compartments:
            comp.x = 0.0
            comp.y = 0.0


@register_visual("lollipop", "socket")
class LabelledIconVisual(Visual):
    """Small icon with its compartments hanging beside or below it."""

    def layout(self, config: Config, clas: Classifier) -> None:
        clas.width = config.font_size * 1.5
        clas.height = config.font_size * 1.5
        clas.dividers = []
        if config.direction in ("LR", "RL"):
            y = clas.height - config.padding
        else:
            y = -clas.height / 2.0
        for comp in clas.compartments:
            if config.direction in ("LR", "RL"):
                comp.x = clas.width / 2.0 - comp.width / 2.0
            else:
                comp.x = clas.width / 2.0 + config.padding / 2.0
            comp.y = y
            y += comp.height


@register_visual("sync")
class SyncVisual(Visual):
    """Thick bar lying across the rank direction."""

    def layout(self, config: Config, clas: Classifier) -> None:
        clas.dividers = []
        if config.direction in ("LR", "RL"):
            clas.width = config.line_width * 3
            clas.height = config.font_size * 5
        else:
            clas.width = config.font_size * 5
            clas.height = config.line_width * 3
        for comp in clas.compartments:
            comp.x = 0.0
            comp.y = 0.0
