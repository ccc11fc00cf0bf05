from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import fakes  # noqa: F401  (puts src/ on sys.path)

from diagramlayout import Classifier, Compartment, Point, Relation, tree_relayout
from diagramlayout.tree import _build_state, _TreeState, _visit


def _node(name: str, x: float, y: float, width: float = 40.0, height: float = 20.0) -> Classifier:
    return Classifier(type="CLASS", name=name, x=x, y=y, width=width, height=height)


def _rel(rel_id: int, start: Classifier, end: Classifier) -> Relation:
    mid_x = (start.x + end.x) / 2.0
    path = [
        Point(start.x, start.y),
        Point(start.x + 20, start.y),
        Point(mid_x, (start.y + end.y) / 2.0),
        Point(end.x - 20, end.y),
        Point(end.x, end.y),
    ]
    return Relation(rel_id, "->", start.name, end.name, path=path)


class TreeRelayoutTests(unittest.TestCase):
    def test_siblings_stack_below_each_other(self) -> None:
        root = _node("R", 20, 100)
        c1 = _node("C1", 100, 50)
        c2 = _node("C2", 100, 150)
        rels = [_rel(1, root, c1), _rel(2, root, c2)]
        compartment = Compartment(nodes=[root, c1, c2], relations=rels)

        deepest, widest = tree_relayout(compartment)

        self.assertEqual((root.y, c1.y, c2.y), (10.0, 10.0, 50.0))
        self.assertEqual((deepest, widest), (80.0, 130.0))

        first, second = rels
        self.assertEqual([p.y for p in first.path[1:]], [15.0, 15.0, 15.0, 15.0])
        self.assertEqual([p.y for p in second.path[2:]], [55.0, 55.0, 55.0])
        self.assertEqual(second.path[1], Point(second.path[2].x, 15.0))
        self.assertEqual(first.path[1].x, 40.0)
        self.assertEqual(first.path[0], Point(20, 100))

    def test_shared_ancestor_is_moved_once(self) -> None:
        root = _node("R", 20, 300)
        a = _node("A", 100, 200)
        b = _node("B", 180, 100)
        c = _node("C", 180, 300)
        compartment = Compartment(
            nodes=[root, a, b, c],
            relations=[_rel(1, root, a), _rel(2, a, b), _rel(3, a, c)],
        )

        deepest, _widest = tree_relayout(compartment)

        self.assertEqual((root.y, a.y, b.y), (10.0, 10.0, 10.0))
        self.assertEqual(c.y, 50.0)
        self.assertEqual(deepest, 80.0)

    def test_chain_columns_count_up_from_root(self) -> None:
        root = _node("R", 20, 400)
        a = _node("A", 100, 300)
        b = _node("B", 180, 200)
        leaf = _node("L", 260, 100)
        c = _node("C", 180, 500)
        d = _node("D", 260, 600)
        compartment = Compartment(
            nodes=[root, a, b, leaf, c, d],
            relations=[
                _rel(1, root, a),
                _rel(2, a, b),
                _rel(3, b, leaf),
                _rel(4, a, c),
                _rel(5, c, d),
            ],
        )
        state = _build_state(compartment)

        _visit(state, root)

        self.assertEqual(
            [state.columns[n] for n in ("R", "A", "B", "L")],
            [0, 1, 2, 3],
        )
        self.assertEqual((root.y, a.y, b.y, leaf.y), (10.0, 10.0, 10.0, 10.0))
        # second chain joins the already placed A
        self.assertEqual((state.columns["C"], state.columns["D"]), (2, 3))
        self.assertEqual((c.y, d.y), (50.0, 50.0))
        self.assertEqual(state.depths, [0.0, 40.0, 80.0, 80.0])

    def test_shared_leaf_is_placed_from_every_parent(self) -> None:
        root = _node("R", 20, 100)
        a = _node("A", 100, 50)
        b = _node("B", 100, 150)
        leaf = _node("L", 180, 100)
        compartment = Compartment(
            nodes=[root, a, b, leaf],
            relations=[_rel(1, root, a), _rel(2, root, b), _rel(3, a, leaf), _rel(4, b, leaf)],
        )

        deepest, _widest = tree_relayout(compartment)

        self.assertEqual((root.y, b.y), (10.0, 10.0))
        self.assertEqual(a.y, 50)
        self.assertEqual(leaf.y, 50.0)
        self.assertEqual(deepest, 80.0)

    def test_cycle_below_root_terminates(self) -> None:
        root = _node("R", 20, 100)
        a = _node("A", 100, 50)
        b = _node("B", 180, 150)
        compartment = Compartment(
            nodes=[root, a, b],
            relations=[_rel(1, root, a), _rel(2, a, b), _rel(3, b, a)],
        )

        deepest, widest = tree_relayout(compartment)

        self.assertEqual((deepest, widest), (0.0, 0.0))
        self.assertEqual((root.y, a.y, b.y), (100, 50, 150))

    def test_column_depths_only_grow(self) -> None:
        state = _TreeState()
        state.columns = {"a": 0, "b": 2, "c": 2}
        state.set_column_depth(_node("a", 0, 50))
        self.assertEqual(state.depths, [80.0])
        state.set_column_depth(_node("b", 0, 100))
        self.assertEqual(state.depths, [80.0, 0.0, 130.0])
        state.set_column_depth(_node("c", 0, 10))
        self.assertEqual(state.depths, [80.0, 0.0, 130.0])
        self.assertEqual(state.max_depth(0, 1), 80.0)
        self.assertEqual(state.max_depth(1, 5), 130.0)
        self.assertEqual(state.max_depth(4, 0), 0.0)

    def test_without_root_only_paths_are_rewritten(self) -> None:
        a = _node("A", 20, 100)
        b = _node("B", 100, 300)
        rels = [_rel(1, a, b), _rel(2, b, a)]
        compartment = Compartment(nodes=[a, b], relations=rels)
        with self.assertLogs("diagramlayout.tree", level="WARNING"):
            deepest, widest = tree_relayout(compartment)
        self.assertEqual((deepest, widest), (0.0, 0.0))
        self.assertEqual((a.y, b.y), (100, 300))
        self.assertEqual(rels[0].path[-1].y, b.top + 15.0)

    def test_unknown_relation_end_is_ignored(self) -> None:
        root = _node("R", 20, 100)
        child = _node("C", 100, 50)
        dangling = Relation(2, "->", "R", "Ghost", path=[Point(0, 0), Point(1, 1), Point(2, 2)])
        compartment = Compartment(nodes=[root, child], relations=[_rel(1, root, child), dangling])

        tree_relayout(compartment)

        self.assertEqual([(p.x, p.y) for p in dangling.path], [(0, 0), (1, 1), (2, 2)])
        self.assertEqual(child.y, 10.0)


if __name__ == "__main__":
    unittest.main()
