"""Strict top-down tree arrangement applied after the automatic layout.

Each root-to-leaf chain discovered by a depth-first walk is laid on one
row: ancestors are top-aligned with the child they were reached from, and
the chain's nodes get column indices counted from the root. A chain that
joins an ancestor already placed by an earlier chain goes below everything
already occupying the columns it spans. Relation paths are then redrawn as
elbows hanging from the nodes' title rows.

Nodes that were already moved are tracked in one set for the whole pass, so
an ancestor reached again from a later leaf is never moved twice; the later
chain is only pushed down against the column depths recorded so far.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .model import Classifier, Compartment, Relation

logger = logging.getLogger(__name__)

COLUMN_TOP_PADDING = 20.0
COLUMN_RIGHT_PADDING = 10.0
ELBOW_OFFSET = 15.0


@dataclass
class _TreeState:
    starts: Dict[str, List[Relation]] = field(default_factory=dict)
    ends: Dict[str, Relation] = field(default_factory=dict)
    nodes: Dict[str, Classifier] = field(default_factory=dict)
    moved: Set[str] = field(default_factory=set)
    columns: Dict[str, int] = field(default_factory=dict)
    depths: List[float] = field(default_factory=list)
    deepest: float = 0.0
    widest: float = 0.0

    def set_column_depth(self, node: Classifier) -> None:
        column = self.columns.get(node.name, 0)
        if len(self.depths) <= column:
            self.depths.extend([0.0] * (column + 1 - len(self.depths)))
        depth = node.y + node.height / 2.0 + COLUMN_TOP_PADDING
        width = node.x + node.width / 2.0 + COLUMN_RIGHT_PADDING
        self.deepest = max(self.deepest, depth)
        self.widest = max(self.widest, width)
        self.depths[column] = max(self.depths[column], depth)

    def max_depth(self, column: int, span: int) -> float:
        return max(self.depths[column : column + span + 1], default=0.0)


def _align_top(node: Classifier, with_node: Classifier) -> None:
    node.y = with_node.top + node.height / 2.0


def _place_chain(state: _TreeState, anchor: Classifier, chain: List[Classifier], base_column: int) -> None:
    """Give every chain member the anchor's row; nearer the leaf means a larger column."""
    count = len(chain)
    for i, member in enumerate(chain):
        _align_top(member, anchor)
        state.columns[member.name] = (count - i) + base_column
        state.set_column_depth(member)


def _ascend(state: _TreeState, leaf: Classifier) -> None:
    node = leaf
    chain: List[Classifier] = []
    while True:
        rel = state.ends.get(node.name)
        if rel is None:
            # the root: pinned to the top edge, owning column 0
            state.columns[node.name] = 0
            node.y = node.height / 2.0
            _place_chain(state, node, chain, 0)
            return
        parent = state.nodes.get(rel.start)
        if parent is None:
            return
        if parent.name in state.moved:
            column = state.columns.get(parent.name, 0) + 1
            state.columns[node.name] = column
            node.y = state.max_depth(column, len(chain)) + node.height / 2.0
            state.set_column_depth(node)
            _place_chain(state, node, chain, column)
            return
        _align_top(parent, node)
        chain.append(node)
        state.moved.add(parent.name)
        node = parent


def _enter(state: _TreeState, node: Classifier) -> Iterator[Classifier]:
    rels = state.starts.get(node.name, [])
    if not rels:
        _ascend(state, node)
    return iter([state.nodes[r.end] for r in rels if r.end in state.nodes])


def _visit(state: _TreeState, root: Classifier) -> None:
    """Depth-first walk that ascends from every leaf it reaches.

    A leaf shared by several parents is reached once per parent. Only a node
    already on the current descent path is skipped, which stops cycles.
    """
    on_path = {root.name}
    stack = [(root, _enter(state, root))]
    while stack:
        node, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            on_path.discard(node.name)
            continue
        if child.name in on_path:
            continue
        on_path.add(child.name)
        stack.append((child, _enter(state, child)))


def _reroute(state: _TreeState, rel: Relation) -> None:
    end = state.nodes.get(rel.end)
    if end is None or len(rel.path) < 3:
        return
    end_y = end.top + ELBOW_OFFSET
    for point in rel.path[2:]:
        point.y = end_y
    start = state.nodes.get(rel.start)
    if start is None:
        return
    rel.path[1].y = start.top + ELBOW_OFFSET
    if rel.path[1].y < rel.path[2].y:
        rel.path[1].x = rel.path[2].x


def _find_root(compartment: Compartment, starts, ends) -> Optional[Classifier]:
    roots = [n for n in compartment.nodes if n.name in starts and n.name not in ends]
    if len(roots) != 1:
        logger.warning(
            "tree relayout expects exactly one root, found %d: %s",
            len(roots),
            ", ".join(n.name for n in roots) or "none",
        )
    return roots[-1] if roots else None


def _build_state(compartment: Compartment) -> _TreeState:
    state = _TreeState()
    for rel in compartment.relations:
        state.starts.setdefault(rel.start, []).append(rel)
        state.ends[rel.end] = rel
    for node in compartment.nodes:
        state.nodes[node.name] = node
    return state


def tree_relayout(compartment: Compartment) -> Tuple[float, float]:
    """Rearrange ``compartment`` as a tree; return the deepest and widest extents."""
    state = _build_state(compartment)
    root = _find_root(compartment, state.starts, state.ends)
    if root is not None:
        _visit(state, root)
    for rel in compartment.relations:
        _reroute(state, rel)
    return state.deepest, state.widest
