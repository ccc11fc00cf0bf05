"""Layout configuration, visual style table and directive parsing."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .errors import LayoutConfigError

logger = logging.getLogger(__name__)

DIRECTIONS = ("TB", "LR", "BT", "RL")
DIRECTION_ALIASES = {
    "down": "TB",
    "right": "LR",
    "up": "BT",
    "left": "RL",
}
ACYCLICERS = ("greedy", "dfs")
RANKERS = ("network-simplex", "tight-tree", "longest-path")
ENGINES = ("auto", "graphviz", "builtin")


@dataclass(frozen=True)
class TextStyle:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    center: bool = False


@dataclass(frozen=True)
class Style:
    """Visual style selected by a classifier type tag."""

    visual: str = "class"
    direction: Optional[str] = None
    title: TextStyle = TextStyle(bold=True, center=True)
    body: TextStyle = TextStyle()
    dashed: bool = False
    empty: bool = False


_TITLE = TextStyle(bold=True, center=True)
_CENTER = TextStyle(center=True)

DEFAULT_STYLES: Dict[str, Style] = {
    "ABSTRACT": Style(visual="class", title=TextStyle(italic=True, center=True)),
    "ACTOR": Style(visual="actor", title=_TITLE),
    "CHOICE": Style(visual="rhomb", title=_CENTER),
    "CLASS": Style(visual="class", title=_TITLE),
    "DATABASE": Style(visual="database", title=_TITLE),
    "END": Style(visual="end", empty=True),
    "FRAME": Style(visual="frame", title=TextStyle(bold=True)),
    "HIDDEN": Style(visual="hidden", empty=True),
    "INPUT": Style(visual="input", title=_CENTER),
    "INSTANCE": Style(visual="class", title=TextStyle(underline=True, center=True)),
    "LABEL": Style(visual="none", title=TextStyle()),
    "LOLLIPOP": Style(visual="lollipop", title=_CENTER),
    "NOTE": Style(visual="note", title=TextStyle()),
    "PACKAGE": Style(visual="package", title=TextStyle(bold=True)),
    "RECEIVER": Style(visual="receiver", title=TextStyle()),
    "REFERENCE": Style(visual="class", title=_CENTER, dashed=True),
    "SENDER": Style(visual="sender", title=TextStyle()),
    "SOCKET": Style(visual="socket", title=_CENTER),
    "START": Style(visual="start", empty=True),
    "STATE": Style(visual="roundrect", title=_CENTER),
    "SYNC": Style(visual="sync", empty=True),
    "TRANSCEIVER": Style(visual="transceiver", title=TextStyle()),
    "USECASE": Style(visual="ellipse", title=_CENTER),
}


@dataclass
class Config:
    padding: float = 8.0
    spacing: float = 40.0
    gutter: float = 5.0
    edge_margin: float = 0.0
    font: str = "Helvetica"
    font_size: float = 12.0
    leading: float = 1.25
    line_width: float = 3.0
    direction: str = "TB"
    gravity: float = 1.0
    acyclicer: str = "greedy"
    ranker: str = "network-simplex"
    zoom: float = 1.0
    same_rank_marker: str = "_"
    align_top: bool = False
    engine: str = "auto"
    styles: Dict[str, Style] = field(default_factory=lambda: dict(DEFAULT_STYLES))

    def style_for(self, type_tag: str) -> Style:
        return self.styles.get(type_tag) or self.styles.get(type_tag.upper()) or DEFAULT_STYLES["CLASS"]


_NUMERIC_KEYS = {
    "padding": "padding",
    "spacing": "spacing",
    "gutter": "gutter",
    "edgemargin": "edge_margin",
    "fontsize": "font_size",
    "leading": "leading",
    "linewidth": "line_width",
    "gravity": "gravity",
    "zoom": "zoom",
}


def _normalize_key(key: str) -> str:
    return re.sub(r"[^a-z]", "", key.lower())


def _parse_number(key: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise LayoutConfigError(
            "E_CONFIG_NUMBER",
            f'directive "{key}" must be numeric (got {raw!r})',
        ) from None
    if value < 0:
        raise LayoutConfigError(
            "E_CONFIG_NUMBER",
            f'directive "{key}" must be >= 0 (got {raw!r})',
        )
    return value


def _parse_direction(raw: str) -> str:
    value = raw.strip()
    if value.upper() in DIRECTIONS:
        return value.upper()
    alias = DIRECTION_ALIASES.get(value.lower())
    if alias is None:
        raise LayoutConfigError(
            "E_CONFIG_DIRECTION",
            f'directive "direction" must be one of down, right, up, left (got {raw!r})',
        )
    return alias


def _parse_choice(key: str, raw: str, choices) -> str:
    value = raw.strip().lower()
    if value not in choices:
        raise LayoutConfigError(
            "E_CONFIG_ENUM",
            f'directive "{key}" must be one of {", ".join(choices)} (got {raw!r})',
        )
    return value


def parse_config(directives: Mapping[str, str], base: Optional[Config] = None) -> Config:
    """Build a Config from ``#key: value`` directives handed over by the parser."""
    updates: Dict[str, object] = {}
    for key, raw in directives.items():
        norm = _normalize_key(key)
        raw = str(raw).strip()
        if norm in _NUMERIC_KEYS:
            updates[_NUMERIC_KEYS[norm]] = _parse_number(key, raw)
        elif norm == "direction":
            updates["direction"] = _parse_direction(raw)
        elif norm == "acyclicer":
            updates["acyclicer"] = _parse_choice(key, raw, ACYCLICERS)
        elif norm == "ranker":
            updates["ranker"] = _parse_choice(key, raw, RANKERS)
        elif norm == "engine":
            updates["engine"] = _parse_choice(key, raw, ENGINES)
        elif norm == "aligntop":
            updates["align_top"] = raw.lower() in {"1", "true", "yes", "on"}
        elif norm == "font":
            updates["font"] = raw
        else:
            logger.debug("ignoring unknown directive %r", key)
    return replace(base or Config(), **updates)
