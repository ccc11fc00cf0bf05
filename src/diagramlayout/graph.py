"""Automatic directed-graph layout behind a small translation boundary.

``layout_graph`` takes sized nodes and edges and returns node centers, one
ordered list of routing points per edge, and the overall size of the
arrangement. Two engines are available: Graphviz ``dot`` (run as a
subprocess and read back from ``-Tplain`` output) and a layered engine
written in Python that is used when Graphviz is not installed.
"""
from __future__ import annotations

import logging
import math
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from .errors import GraphLayoutError

logger = logging.getLogger(__name__)

PX_PER_INCH = 96.0
GRAPHVIZ_TIMEOUT = 5.0

Coord = Tuple[float, float]


@dataclass
class GraphNode:
    node_id: str
    width: float
    height: float


@dataclass
class GraphEdge:
    edge_id: int
    from_id: str
    to_id: str
    minlen: Optional[float] = None


@dataclass
class GraphOptions:
    direction: str = "TB"
    node_sep: float = 40.0
    edge_sep: float = 40.0
    rank_sep: float = 40.0
    acyclicer: str = "greedy"
    ranker: str = "network-simplex"
    engine: str = "auto"


@dataclass
class GraphLayout:
    node_positions: Dict[str, Coord] = field(default_factory=dict)
    edge_points: Dict[int, List[Coord]] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0


GraphLayoutFn = Callable[[List[GraphNode], List[GraphEdge], GraphOptions], GraphLayout]


def layout_graph(
    nodes: List[GraphNode], edges: List[GraphEdge], options: GraphOptions
) -> GraphLayout:
    """Lay out ``nodes`` and ``edges`` with the engine named in ``options``."""
    if options.direction not in {"TB", "BT", "LR", "RL"}:
        raise GraphLayoutError(
            "E_GRAPH_OPTIONS", f'unsupported rank direction "{options.direction}"'
        )
    if options.engine not in {"auto", "graphviz", "builtin"}:
        raise GraphLayoutError("E_GRAPH_OPTIONS", f'unknown graph engine "{options.engine}"')
    if not nodes:
        return GraphLayout()

    engine = options.engine
    dot_path = shutil.which("dot") if engine != "builtin" else None
    if engine == "graphviz" and not dot_path:
        raise GraphLayoutError(
            "E_GRAPHVIZ_UNAVAILABLE",
            'graph engine "graphviz" requires Graphviz ("dot" executable not found)',
        )
    if dot_path:
        logger.debug("laying out %d nodes with Graphviz at %s", len(nodes), dot_path)
        return _layout_graph_with_graphviz(dot_path, nodes, edges, options)
    logger.debug("laying out %d nodes with the builtin layered engine", len(nodes))
    return _layout_graph_builtin(nodes, edges, options)


def _edge_minlen(edge: GraphEdge) -> int:
    if edge.minlen is None:
        return 1
    return max(0, int(math.floor(edge.minlen + 0.5)))


# Graphviz engine


def _layout_graph_with_graphviz(
    dot_path: str, nodes: List[GraphNode], edges: List[GraphEdge], options: GraphOptions
) -> GraphLayout:
    if options.ranker != "network-simplex":
        logger.debug('Graphviz ranks with network simplex; ranker "%s" not applied', options.ranker)
    dot_text = _build_graphviz_dot(nodes, edges, options)
    try:
        proc = subprocess.run(
            [dot_path, "-Kdot", "-Tplain"],
            input=dot_text,
            text=True,
            capture_output=True,
            check=False,
            timeout=GRAPHVIZ_TIMEOUT,
        )
    except subprocess.TimeoutExpired as exc:
        raise GraphLayoutError("E_GRAPH_LAYOUT_FAILED", "graph layout timed out") from exc
    except OSError as exc:
        raise GraphLayoutError(
            "E_GRAPH_LAYOUT_FAILED", f"failed to execute Graphviz: {exc}"
        ) from exc
    if proc.returncode != 0:
        detail = (proc.stderr or "").strip()
        if len(detail) > 240:
            detail = detail[:240] + "..."
        raise GraphLayoutError(
            "E_GRAPH_LAYOUT_FAILED", f'Graphviz failed: {detail or "unknown error"}'
        )
    return _parse_graphviz_plain_layout(proc.stdout, nodes, edges)


def _build_graphviz_dot(
    nodes: List[GraphNode], edges: List[GraphEdge], options: GraphOptions
) -> str:
    nodesep_in = max(0.02, options.node_sep / PX_PER_INCH)
    ranksep_in = max(0.02, options.rank_sep / PX_PER_INCH)
    lines: List[str] = ["digraph G {"]
    lines.append(
        f'  graph [rankdir="{options.direction}", nodesep="{nodesep_in:.4f}", '
        f'ranksep="{ranksep_in:.4f}", splines="polyline"];'
    )
    lines.append('  node [shape="box", fixedsize="true", margin="0", label=""];')
    for node in nodes:
        width_in = max(0.01, node.width / PX_PER_INCH)
        height_in = max(0.01, node.height / PX_PER_INCH)
        lines.append(
            f'  {_dot_quote(node.node_id)} [width="{width_in:.4f}", height="{height_in:.4f}"];'
        )
    for edge in edges:
        attrs = ""
        if edge.minlen is not None:
            attrs = f' [minlen="{_edge_minlen(edge)}"]'
        lines.append(f"  {_dot_quote(edge.from_id)} -> {_dot_quote(edge.to_id)}{attrs};")
    lines.append("}")
    return "\n".join(lines)


def _dot_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _parse_graphviz_plain_layout(
    plain_text: str, nodes: List[GraphNode], edges: List[GraphEdge]
) -> GraphLayout:
    lines = [ln.strip() for ln in plain_text.splitlines() if ln.strip()]
    if not lines or not lines[0].startswith("graph "):
        raise GraphLayoutError(
            "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: missing graph header"
        )
    header = shlex.split(lines[0])
    if len(header) < 4:
        raise GraphLayoutError(
            "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: malformed graph header"
        )
    try:
        graph_width_in = float(header[2])
        graph_height_in = float(header[3])
    except ValueError as exc:
        raise GraphLayoutError(
            "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: invalid graph dimensions"
        ) from exc

    def to_px(x_in: float, y_in: float) -> Coord:
        return x_in * PX_PER_INCH, (graph_height_in - y_in) * PX_PER_INCH

    centers: Dict[str, Coord] = {}
    routes: Dict[Tuple[str, str], List[List[Coord]]] = {}
    for line in lines[1:]:
        if line == "stop":
            break
        parts = shlex.split(line)
        if not parts:
            continue
        kind = parts[0]
        if kind == "node":
            if len(parts) < 4:
                raise GraphLayoutError(
                    "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: malformed node line"
                )
            try:
                centers[parts[1]] = to_px(float(parts[2]), float(parts[3]))
            except ValueError as exc:
                raise GraphLayoutError(
                    "E_GRAPH_LAYOUT_PARSE",
                    f'unexpected Graphviz plain output: invalid numeric node data for "{parts[1]}"',
                ) from exc
        elif kind == "edge":
            if len(parts) < 4:
                raise GraphLayoutError(
                    "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: malformed edge line"
                )
            try:
                n = int(parts[3])
                coords = [float(v) for v in parts[4 : 4 + 2 * n]]
            except ValueError as exc:
                raise GraphLayoutError(
                    "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: invalid edge points"
                ) from exc
            if len(coords) < 2 * n:
                raise GraphLayoutError(
                    "E_GRAPH_LAYOUT_PARSE", "unexpected Graphviz plain output: truncated edge points"
                )
            points = [to_px(coords[i], coords[i + 1]) for i in range(0, len(coords), 2)]
            routes.setdefault((parts[1], parts[2]), []).append(points)

    result = GraphLayout(width=graph_width_in * PX_PER_INCH, height=graph_height_in * PX_PER_INCH)
    for node in nodes:
        if node.node_id not in centers:
            raise GraphLayoutError(
                "E_GRAPH_LAYOUT_PARSE", f'Graphviz output missing node "{node.node_id}"'
            )
        result.node_positions[node.node_id] = centers[node.node_id]
    for edge in edges:
        queue = routes.get((edge.from_id, edge.to_id))
        if not queue:
            raise GraphLayoutError(
                "E_GRAPH_LAYOUT_PARSE",
                f'Graphviz output missing edge "{edge.from_id}" -> "{edge.to_id}"',
            )
        result.edge_points[edge.edge_id] = queue.pop(0)
    return result


# Builtin layered engine


def _greedy_order(order: List[str], links: List[Tuple[str, str]]) -> List[str]:
    """Eades-Lin-Smyth vertex sequence; links pointing backwards form the feedback set."""
    remaining = set(order)
    out_deg = {n: 0 for n in order}
    in_deg = {n: 0 for n in order}
    succs: Dict[str, List[str]] = {n: [] for n in order}
    preds: Dict[str, List[str]] = {n: [] for n in order}
    for u, v in links:
        out_deg[u] += 1
        in_deg[v] += 1
        succs[u].append(v)
        preds[v].append(u)

    def remove(n: str) -> None:
        remaining.discard(n)
        for v in succs[n]:
            in_deg[v] -= 1
        for u in preds[n]:
            out_deg[u] -= 1

    head: List[str] = []
    tail: List[str] = []
    while remaining:
        changed = True
        while changed:
            changed = False
            for n in order:
                if n in remaining and out_deg[n] == 0:
                    tail.insert(0, n)
                    remove(n)
                    changed = True
            for n in order:
                if n in remaining and in_deg[n] == 0:
                    head.append(n)
                    remove(n)
                    changed = True
        if remaining:
            pick = max(
                (n for n in order if n in remaining), key=lambda n: out_deg[n] - in_deg[n]
            )
            head.append(pick)
            remove(pick)
    return head + tail


def _dfs_back_links(order: List[str], links: List[Tuple[str, str]]) -> Set[int]:
    outgoing: Dict[str, List[int]] = {n: [] for n in order}
    for idx, (u, _v) in enumerate(links):
        outgoing[u].append(idx)
    state = {n: 0 for n in order}
    back: Set[int] = set()
    for root in order:
        if state[root]:
            continue
        state[root] = 1
        stack = [(root, iter(outgoing[root]))]
        while stack:
            node_id, pending = stack[-1]
            advanced = False
            for idx in pending:
                target = links[idx][1]
                if state[target] == 0:
                    state[target] = 1
                    stack.append((target, iter(outgoing[target])))
                    advanced = True
                    break
                if state[target] == 1:
                    back.add(idx)
            if not advanced:
                state[node_id] = 2
                stack.pop()
    return back


def _break_cycles(
    order: List[str], edges: List[GraphEdge], acyclicer: str
) -> List[Tuple[str, str, int]]:
    links = [(e.from_id, e.to_id) for e in edges if e.from_id != e.to_id]
    minlens = [_edge_minlen(e) for e in edges if e.from_id != e.to_id]
    if acyclicer == "greedy":
        position = {n: i for i, n in enumerate(_greedy_order(order, links))}
        back = {i for i, (u, v) in enumerate(links) if position[u] > position[v]}
    elif acyclicer == "dfs":
        back = _dfs_back_links(order, links)
    else:
        raise GraphLayoutError("E_GRAPH_OPTIONS", f'unknown cycle breaker "{acyclicer}"')
    dag: List[Tuple[str, str, int]] = []
    for idx, (u, v) in enumerate(links):
        if idx in back:
            u, v = v, u
        dag.append((u, v, minlens[idx]))
    return dag


def _rank_nodes(order: List[str], dag: List[Tuple[str, str, int]], ranker: str) -> Dict[str, int]:
    if ranker not in {"network-simplex", "tight-tree", "longest-path"}:
        raise GraphLayoutError("E_GRAPH_OPTIONS", f'unknown ranker "{ranker}"')
    outgoing: Dict[str, List[Tuple[str, int]]] = {n: [] for n in order}
    indegree = {n: 0 for n in order}
    for u, v, minlen in dag:
        outgoing[u].append((v, minlen))
        indegree[v] += 1

    queue = [n for n in order if indegree[n] == 0]
    topo: List[str] = []
    cursor = 0
    while cursor < len(queue):
        u = queue[cursor]
        cursor += 1
        topo.append(u)
        for v, _minlen in outgoing[u]:
            indegree[v] -= 1
            if indegree[v] == 0:
                queue.append(v)
    if len(topo) != len(order):
        topo = order[:]

    rank = {n: 0 for n in order}
    for u in topo:
        for v, minlen in outgoing[u]:
            if rank[v] < rank[u] + minlen:
                rank[v] = rank[u] + minlen

    if ranker != "longest-path":
        # pull sources down next to their nearest successor
        has_pred = {v for _u, v, _m in dag}
        for u in reversed(topo):
            if u in has_pred or not outgoing[u]:
                continue
            rank[u] = min(rank[v] - minlen for v, minlen in outgoing[u])

    lowest = min(rank.values(), default=0)
    return {n: r - lowest for n, r in rank.items()}


def _order_ranks(
    order: List[str], dag: List[Tuple[str, str, int]], rank: Dict[str, int]
) -> Dict[int, List[str]]:
    order_index = {n: i for i, n in enumerate(order)}
    rank_to_nodes: Dict[int, List[str]] = {}
    for n in order:
        rank_to_nodes.setdefault(rank[n], []).append(n)

    max_rank = max(rank_to_nodes.keys(), default=0)
    for r in range(1, max_rank + 1):
        current = rank_to_nodes.get(r, [])
        if not current:
            continue
        prev_pos: Dict[str, int] = {}
        for pr in range(0, r):
            for idx, n in enumerate(rank_to_nodes.get(pr, [])):
                prev_pos.setdefault(n, idx)
        median_by_node: Dict[str, float] = {}
        for n in current:
            positions = sorted(
                prev_pos.get(u, order_index[u]) for (u, v, _m) in dag if v == n and rank[u] < r
            )
            if not positions:
                median_by_node[n] = float("inf")
                continue
            mid = len(positions) // 2
            if len(positions) % 2 == 1:
                median_by_node[n] = float(positions[mid])
            else:
                median_by_node[n] = 0.5 * (positions[mid - 1] + positions[mid])
        rank_to_nodes[r] = sorted(current, key=lambda n: (median_by_node[n], order_index[n]))
    return rank_to_nodes


def _ray_rect_intersection(
    origin: Coord, toward: Coord, bbox: Tuple[float, float, float, float]
) -> Optional[Coord]:
    ox, oy = origin
    tx, ty = toward
    dx = tx - ox
    dy = ty - oy
    if abs(dx) < 1e-12 and abs(dy) < 1e-12:
        return None
    left, top, right, bottom = bbox
    candidates: List[Tuple[float, float, float]] = []
    if abs(dx) > 1e-12:
        for x in (left, right):
            t = (x - ox) / dx
            if t <= 1e-12:
                continue
            y = oy + t * dy
            if top - 1e-9 <= y <= bottom + 1e-9:
                candidates.append((t, x, y))
    if abs(dy) > 1e-12:
        for y in (top, bottom):
            t = (y - oy) / dy
            if t <= 1e-12:
                continue
            x = ox + t * dx
            if left - 1e-9 <= x <= right + 1e-9:
                candidates.append((t, x, y))
    if not candidates:
        return None
    _t, x, y = min(candidates)
    return x, y


def _layout_graph_builtin(
    nodes: List[GraphNode], edges: List[GraphEdge], options: GraphOptions
) -> GraphLayout:
    order = [n.node_id for n in nodes]
    size_by_id = {n.node_id: (n.width, n.height) for n in nodes}
    for edge in edges:
        if edge.from_id not in size_by_id or edge.to_id not in size_by_id:
            raise GraphLayoutError(
                "E_GRAPH_UNKNOWN_NODE",
                f'edge "{edge.from_id}" -> "{edge.to_id}" references an unknown node',
            )

    dag = _break_cycles(order, edges, options.acyclicer)
    rank = _rank_nodes(order, dag, options.ranker)
    rank_to_nodes = _order_ranks(order, dag, rank)
    vertical = options.direction in {"TB", "BT"}

    max_rank = max(rank_to_nodes.keys(), default=0)
    cross_span: Dict[int, float] = {}
    main_size: Dict[int, float] = {}
    for r in range(0, max_rank + 1):
        members = rank_to_nodes.get(r, [])
        cross = [size_by_id[n][0 if vertical else 1] for n in members]
        main = [size_by_id[n][1 if vertical else 0] for n in members]
        span = sum(cross)
        if members:
            span += options.node_sep * (len(members) - 1)
        cross_span[r] = span
        main_size[r] = max(main, default=0.0)

    max_cross = max(cross_span.values(), default=0.0)
    main_center: Dict[int, float] = {}
    cursor_main = 0.0
    for r in range(0, max_rank + 1):
        main_center[r] = cursor_main + main_size[r] / 2.0
        cursor_main += main_size[r] + options.rank_sep
    total_main = cursor_main - options.rank_sep

    result = GraphLayout()
    for r in range(0, max_rank + 1):
        cross_cursor = (max_cross - cross_span[r]) / 2.0
        for n in rank_to_nodes.get(r, []):
            width, height = size_by_id[n]
            extent = width if vertical else height
            c = cross_cursor + extent / 2.0
            m = main_center[r]
            if options.direction in {"BT", "RL"}:
                m = total_main - m
            result.node_positions[n] = (c, m) if vertical else (m, c)
            cross_cursor += extent + options.node_sep

    if vertical:
        result.width, result.height = max_cross, total_main
    else:
        result.width, result.height = total_main, max_cross

    for edge in edges:
        result.edge_points[edge.edge_id] = _route_edge(edge, result.node_positions, size_by_id, options)
    return result


def _route_edge(
    edge: GraphEdge,
    centers: Dict[str, Coord],
    size_by_id: Dict[str, Tuple[float, float]],
    options: GraphOptions,
) -> List[Coord]:
    def bbox(node_id: str) -> Tuple[float, float, float, float]:
        (cx, cy), (w, h) = centers[node_id], size_by_id[node_id]
        return cx - w / 2.0, cy - h / 2.0, cx + w / 2.0, cy + h / 2.0

    c_from = centers[edge.from_id]
    c_to = centers[edge.to_id]
    if edge.from_id == edge.to_id:
        left, top, right, bottom = bbox(edge.from_id)
        loop = options.edge_sep / 2.0
        if options.direction in {"TB", "BT"}:
            return [
                (right, c_from[1] - (bottom - top) / 4.0),
                (right + loop, c_from[1]),
                (right, c_from[1] + (bottom - top) / 4.0),
            ]
        return [
            (c_from[0] - (right - left) / 4.0, bottom),
            (c_from[0], bottom + loop),
            (c_from[0] + (right - left) / 4.0, bottom),
        ]
    p_from = _ray_rect_intersection(c_from, c_to, bbox(edge.from_id)) or c_from
    p_to = _ray_rect_intersection(c_to, c_from, bbox(edge.to_id)) or c_to
    mid = ((p_from[0] + p_to[0]) / 2.0, (p_from[1] + p_to[1]) / 2.0)
    return [p_from, mid, p_to]
