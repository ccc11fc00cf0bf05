"""Public API for diagramlayout."""
import logging

from .config import DEFAULT_STYLES, Config, Style, TextStyle, parse_config
from .errors import GraphLayoutError, LayoutConfigError, LayoutError
from .graph import GraphEdge, GraphLayout, GraphNode, GraphOptions, layout_graph
from .labels import adjust_quadrant, layout_label, quadrant
from .layouter import Layouter, layout
from .measure import Measurer, PillowMeasurer
from .model import Classifier, Compartment, Point, Relation, RelationLabel, index_by_name
from .tree import tree_relayout

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Classifier",
    "Compartment",
    "Config",
    "DEFAULT_STYLES",
    "GraphEdge",
    "GraphLayout",
    "GraphLayoutError",
    "GraphNode",
    "GraphOptions",
    "LayoutConfigError",
    "LayoutError",
    "Layouter",
    "Measurer",
    "PillowMeasurer",
    "Point",
    "Relation",
    "RelationLabel",
    "Style",
    "TextStyle",
    "adjust_quadrant",
    "index_by_name",
    "layout",
    "layout_graph",
    "layout_label",
    "parse_config",
    "quadrant",
    "tree_relayout",
]
