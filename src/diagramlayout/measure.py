"""Text measurement used to size compartments and relation labels."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from PIL import ImageFont

from .config import Config, TextStyle

logger = logging.getLogger(__name__)

GENERIC_FONT_FALLBACKS = {
    "sans-serif": ["Helvetica", "Arial", "Liberation Sans", "DejaVu Sans"],
    "serif": ["Times New Roman", "Times", "Liberation Serif", "DejaVu Serif"],
    "monospace": ["Courier New", "Courier", "Liberation Mono", "DejaVu Sans Mono"],
    "helvetica": ["Helvetica", "Arial", "Liberation Sans", "DejaVu Sans"],
}


class Measurer(Protocol):
    def set_font(self, config: Config, weight: str, style: Optional[TextStyle]) -> None:
        ...

    def text_width(self, line: str) -> float:
        ...

    def text_height(self) -> float:
        ...


class PillowMeasurer:
    """Caches Pillow fonts and measures text with the current font."""

    FONT_DIRS = [
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/Library/Fonts"),
        Path("~/Library/Fonts").expanduser(),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("C:/Windows/Fonts"),
    ]

    def __init__(self) -> None:
        self._font_cache: Dict[Tuple[str, int, bool, bool], Optional[ImageFont.ImageFont]] = {}
        self._font_paths: Dict[str, Optional[str]] = {}
        self._font: Optional[ImageFont.ImageFont] = None
        self._font_size = 12.0
        self._leading = 1.25

    def set_font(self, config: Config, weight: str, style: Optional[TextStyle]) -> None:
        self._font_size = config.font_size
        self._leading = config.leading
        italic = bool(style and style.italic)
        self._font = self.font(config.font, config.font_size, weight == "bold", italic)

    def text_width(self, line: str) -> float:
        if self._font is None:
            return _heuristic_width(line, self._font_size)
        return float(self._font.getlength(line))

    def text_height(self) -> float:
        return self._leading * self._font_size

    def font(
        self, family: str, size: float, bold: bool = False, italic: bool = False
    ) -> Optional[ImageFont.ImageFont]:
        key_size = max(1, int(round(size)))
        cache_key = (family.lower(), key_size, bold, italic)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        suffix = " ".join(part for part, on in (("bold", bold), ("italic", italic)) if on)
        candidates: List[str] = []
        for fam in GENERIC_FONT_FALLBACKS.get(family.lower(), [family]):
            resolved = self._locate_font(f"{fam} {suffix}".strip())
            if resolved:
                candidates.append(resolved)
        candidates.append("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf")

        font: Optional[ImageFont.ImageFont] = None
        for candidate in candidates:
            try:
                path, index = self._parse_font_candidate(candidate)
                font = ImageFont.truetype(path, key_size, index=index)
                break
            except OSError:
                continue
        if font is None:
            logger.debug("no TrueType font for %r, using Pillow default", family)
            try:
                font = ImageFont.load_default()
            except OSError:
                font = None

        self._font_cache[cache_key] = font
        return font

    def _locate_font(self, family: str) -> Optional[str]:
        key = family.lower()
        if key in self._font_paths:
            return self._font_paths[key]
        normalized = re.sub(r"[^a-z0-9]+", "", family, flags=re.IGNORECASE).lower()
        aliases = {normalized, normalized + "mt", normalized + "psmt"}
        best_match: Optional[Tuple[int, str]] = None
        for directory in self.FONT_DIRS:
            if not directory.exists():
                continue
            try:
                for glob in ("*.ttf", "*.ttc"):
                    for path in directory.rglob(glob):
                        stem = re.sub(r"[^a-z0-9]+", "", path.stem, flags=re.IGNORECASE).lower()
                        if not normalized:
                            continue
                        match_score = None
                        if stem in aliases:
                            match_score = 0
                        elif stem.startswith(normalized):
                            match_score = 1
                        if match_score is None:
                            continue
                        candidate = str(path) if glob == "*.ttf" else f"{path};0"
                        if best_match is None or match_score < best_match[0]:
                            best_match = (match_score, candidate)
            except OSError:
                continue
        resolved = best_match[1] if best_match else None
        self._font_paths[key] = resolved
        return resolved

    @staticmethod
    def _parse_font_candidate(candidate: str) -> Tuple[str, int]:
        if ";" in candidate:
            path, idx = candidate.split(";", 1)
            try:
                return path, int(idx)
            except ValueError:
                return path, 0
        return candidate, 0


def _heuristic_width(text: str, font_size: float) -> float:
    width = 0.0
    for ch in text:
        if ch.isspace():
            width += font_size * 0.33
        elif ch in "il":
            width += font_size * 0.3
        elif ch in "mwMW@#":
            width += font_size * 0.9
        else:
            width += font_size * 0.6
    return width
