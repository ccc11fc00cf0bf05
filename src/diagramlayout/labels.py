"""Quadrant-aware placement of relation start/end labels.

Quadrants are numbered by the side of the anchor the label is drawn on:
1 above-right, 2 above-left, 3 below-left, 4 below-right.
"""
from __future__ import annotations

from typing import Optional

from .config import Config
from .measure import Measurer
from .model import Point, RelationLabel

LABEL_LINE_DELIMITER = "`"

FLIP_ACROSS_HORIZONTAL = {1: 4, 2: 3, 3: 2, 4: 1}
FLIP_ACROSS_VERTICAL = {1: 2, 2: 1, 3: 4, 4: 3}


def quadrant(point, center, fallback: int) -> int:
    """Classify the label anchor ``point`` around the node ``center``."""
    if point.x < center.x and point.y < center.y:
        return 1
    if point.x > center.x and point.y < center.y:
        return 2
    if point.x > center.x and point.y > center.y:
        return 3
    if point.x < center.x and point.y > center.y:
        return 4
    return fallback


def adjust_quadrant(value: int, point, opposite, direction: str) -> int:
    """Flip ``value`` when the connector toward ``opposite`` runs through it."""
    if opposite.x == point.x or opposite.y == point.y:
        return value
    if opposite.y < point.y:
        opposite_quadrant = 2 if opposite.x < point.x else 1
    else:
        opposite_quadrant = 3 if opposite.x < point.x else 4
    if opposite_quadrant != value:
        return value
    if direction in ("LR", "RL"):
        return FLIP_ACROSS_HORIZONTAL[value]
    if direction in ("TB", "BT"):
        return FLIP_ACROSS_VERTICAL[value]
    return value


def layout_label(
    label: RelationLabel,
    point: Point,
    value: int,
    measurer: Measurer,
    config: Config,
) -> None:
    text: Optional[str] = label.text
    if not text:
        label.width = 0.0
        label.height = 0.0
        label.x = point.x
        label.y = point.y
        return
    lines = text.split(LABEL_LINE_DELIMITER)
    label.width = max(measurer.text_width(line) for line in lines)
    label.height = config.font_size * len(lines)
    if value in (1, 4):
        label.x = point.x + config.padding
    else:
        label.x = point.x - label.width - config.padding
    if value in (3, 4):
        label.y = point.y + config.padding
    else:
        label.y = point.y - label.height - config.padding
