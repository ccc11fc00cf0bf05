"""Recursive compartment and classifier sizing over the diagram tree."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple, Union

from .config import DEFAULT_STYLES, Config, Style
from .graph import GraphEdge, GraphLayoutFn, GraphNode, GraphOptions, layout_graph
from .labels import adjust_quadrant, layout_label, quadrant
from .measure import Measurer
from .model import Classifier, Compartment, Point, Relation, index_by_name
from .tree import tree_relayout
from .visuals import visual_for

logger = logging.getLogger(__name__)

TREE_BOTTOM_MARGIN = 30.0


@dataclass
class _Task:
    item: Union[Compartment, Classifier]
    index: int
    style: Optional[Style]
    config: Config


def _post_order(root: _Task) -> List[_Task]:
    """Order tasks so every classifier follows its compartments and every
    compartment follows the classifiers nested in it.

    Compartments are always laid out with the root config. A classifier gets
    the enclosing style's direction only for its own visual.
    """
    base = root.config
    out: List[_Task] = []
    stack = [root]
    while stack:
        task = stack.pop()
        out.append(task)
        if isinstance(task.item, Classifier):
            style = task.config.style_for(task.item.type)
            for i, comp in enumerate(task.item.compartments):
                stack.append(_Task(comp, i, style, base))
        elif not task.item.is_leaf:
            styled = replace(base, direction=task.style.direction or base.direction)
            for clas in task.item.nodes:
                stack.append(_Task(clas, 0, None, styled))
    out.reverse()
    return out


class Layouter:
    """Sizes and positions one diagram tree.

    Compartments are laid out post-order: every child classifier is sized
    before the sub-graph holding it is handed to the graph layout.
    """

    def __init__(
        self,
        measurer: Measurer,
        config: Config,
        graph_layout: Optional[GraphLayoutFn] = None,
    ) -> None:
        self.measurer = measurer
        self.config = config
        self.graph_layout = graph_layout or layout_graph

    def measure_lines(
        self, lines: List[str], weight: str, config: Optional[Config] = None
    ) -> Tuple[float, float]:
        config = config or self.config
        if not lines:
            return 0.0, config.padding
        self.measurer.set_font(config, weight, None)
        width = max(self.measurer.text_width(line) for line in lines)
        return (
            width + 2 * config.padding,
            self.measurer.text_height() * len(lines) + 2 * config.padding,
        )

    def layout_compartment(
        self, compartment: Compartment, index: int, style: Style, config: Optional[Config] = None
    ) -> None:
        self._run(_Task(compartment, index, style, config or self.config))

    def layout_classifier(self, clas: Classifier, config: Optional[Config] = None) -> None:
        self._run(_Task(clas, 0, None, config or self.config))

    def _run(self, root: _Task) -> None:
        for task in _post_order(root):
            if isinstance(task.item, Classifier):
                self._size_classifier(task.item, task.config)
            else:
                self._size_compartment(task.item, task.index, task.style, task.config)

    def _size_classifier(self, clas: Classifier, config: Config) -> None:
        style = config.style_for(clas.type)
        visual_for(style.visual).layout(config, clas)
        clas.layout_width = clas.width + 2 * config.edge_margin
        clas.layout_height = clas.height + 2 * config.edge_margin

    def _size_compartment(
        self, compartment: Compartment, index: int, style: Style, config: Config
    ) -> None:
        text_width, text_height = self.measure_lines(
            compartment.lines, "normal" if index else "bold", config
        )

        if compartment.is_leaf:
            compartment.width = text_width
            compartment.height = text_height
            compartment.offset = Point(config.padding, config.padding)
            return

        direction = style.direction or config.direction
        nodes = index_by_name(compartment.nodes)
        relations = self._relations_in_graph(compartment.relations, nodes)
        graph_nodes = [GraphNode(c.name, c.layout_width, c.layout_height) for c in nodes.values()]
        graph_edges = [
            GraphEdge(rel.id, rel.start, rel.end, self._edge_minlen(rel, config)) for rel in relations
        ]
        options = GraphOptions(
            direction=direction,
            node_sep=config.spacing,
            edge_sep=config.spacing,
            rank_sep=config.spacing,
            acyclicer=config.acyclicer,
            ranker=config.ranker,
            engine=config.engine,
        )
        result = self.graph_layout(graph_nodes, graph_edges, options)

        for name, (x, y) in result.node_positions.items():
            if name in nodes:
                nodes[name].x = x
                nodes[name].y = y

        self.measurer.set_font(config, "normal", None)
        left = right = top = bottom = 0.0
        for rel in relations:
            start = nodes[rel.start]
            end = nodes[rel.end]
            points = [Point(x, y) for x, y in result.edge_points.get(rel.id, [])]
            rel.path = [Point(start.x, start.y), *points, Point(end.x, end.y)]

            start_anchor = rel.path[1]
            end_anchor = rel.path[-2]
            layout_label(
                rel.start_label,
                start_anchor,
                adjust_quadrant(quadrant(start_anchor, start, 4), start, end, direction),
                self.measurer,
                config,
            )
            layout_label(
                rel.end_label,
                end_anchor,
                adjust_quadrant(quadrant(end_anchor, end, 2), end, start, direction),
                self.measurer,
                config,
            )

            xs = [p.x for p in points]
            ys = [p.y for p in points]
            labels = (rel.start_label, rel.end_label)
            left = min(left, *xs, *(lb.x for lb in labels))
            right = max(right, *xs, *(lb.x + lb.width for lb in labels))
            top = min(top, *ys, *(lb.y for lb in labels))
            bottom = max(bottom, *ys, *(lb.y + lb.height for lb in labels))

        width = max(result.width, right - left)
        height = max(result.height, bottom - top)
        graph_width = width + 2 * config.gutter if width else 0.0
        graph_height = height + 2 * config.gutter if height else 0.0

        compartment.width = max(text_width, graph_width) + 2 * config.padding
        compartment.height = text_height + graph_height + config.padding
        compartment.offset = Point(config.padding - left, config.padding - top)

    def _relations_in_graph(self, relations: Iterable[Relation], nodes) -> List[Relation]:
        kept: List[Relation] = []
        for rel in relations:
            if rel.start in nodes and rel.end in nodes:
                kept.append(rel)
                continue
            logger.warning(
                'relation %s "%s" -> "%s" references an unknown classifier; skipped',
                rel.id,
                rel.start,
                rel.end,
            )
            rel.path = []
        return kept

    @staticmethod
    def _edge_minlen(rel: Relation, config: Config) -> Optional[float]:
        if config.same_rank_marker and config.same_rank_marker in rel.assoc:
            return 0
        if config.gravity != 1:
            return config.gravity
        return None


def layout(
    measurer: Measurer,
    config: Config,
    root: Compartment,
    graph_layout: Optional[GraphLayoutFn] = None,
) -> Compartment:
    """Populate every geometry field of ``root`` and return it."""
    layouter = Layouter(measurer, config, graph_layout)
    layouter.layout_compartment(root, 0, DEFAULT_STYLES["CLASS"])
    if config.align_top:
        deepest, widest = tree_relayout(root)
        logger.debug("tree relayout reached depth %.1f, width %.1f", deepest, widest)
        root.height = deepest + TREE_BOTTOM_MARGIN
    return root
