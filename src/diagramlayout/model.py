"""Diagram tree: compartments, classifiers, relations and their geometry."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass
class Point:
    x: float = 0.0
    y: float = 0.0


@dataclass
class RelationLabel:
    text: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class Relation:
    """Connector between two classifiers referenced by name."""

    id: int
    assoc: str
    start: str
    end: str
    start_label: RelationLabel = field(default_factory=RelationLabel)
    end_label: RelationLabel = field(default_factory=RelationLabel)
    path: List[Point] = field(default_factory=list)


@dataclass
class Compartment:
    """Band of text lines, optionally holding a nested sub-graph."""

    lines: List[str] = field(default_factory=list)
    nodes: List["Classifier"] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    offset: Point = field(default_factory=Point)

    @property
    def is_leaf(self) -> bool:
        return not self.nodes and not self.relations


@dataclass
class Classifier:
    """Diagram node. ``x``/``y`` is the center once laid out."""

    type: str
    name: str
    compartments: List[Compartment] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    layout_width: float = 0.0
    layout_height: float = 0.0
    dividers: List[Tuple[Point, Point]] = field(default_factory=list)

    @property
    def top(self) -> float:
        return self.y - self.height / 2.0


def index_by_name(classifiers: Iterable[Classifier]) -> Dict[str, Classifier]:
    index: Dict[str, Classifier] = {}
    for clas in classifiers:
        index[clas.name] = clas
    return index
