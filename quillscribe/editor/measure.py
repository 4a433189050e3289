"""Screen position of text offsets inside a surface.

Two strategies: read the coordinates of the pointer event that ended the
selection, or lay the surface text out in an off-screen mirror that copies
the surface's font metrics and measure the selected span there.
"""
from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from quillscribe.editor.geometry import Point, Rect
from quillscribe.editor.surfaces import BLOCK_SEPARATOR, PlainTextSurface, RichTextDocument, Surface, SurfaceStyle

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"(\S*)([^\S\n]*)")

Line = Tuple[int, int]


def wrap_pre(text: str, columns: int) -> List[Line]:
    """Lay ``text`` out the way ``white-space: pre-wrap`` does.

    Returns ``(start, end)`` offsets per visual line. Newlines always break,
    runs of spaces are preserved and hang at the end of a line instead of
    wrapping, and a word longer than a full line is broken mid-word
    (``overflow-wrap: break-word``).
    """
    columns = max(1, columns)
    lines: List[Line] = []
    base = 0
    for paragraph in text.split("\n"):
        lines.extend(_wrap_paragraph(paragraph, base, columns))
        base += len(paragraph) + 1
    return lines


def _wrap_paragraph(paragraph: str, base: int, columns: int) -> List[Line]:
    lines: List[Line] = []
    line_start = base
    width = 0
    for match in _TOKEN.finditer(paragraph):
        if not match.group(0):
            continue
        word, spaces = match.group(1), match.group(2)
        start = base + match.start()
        if width and width + len(word) > columns:
            lines.append((line_start, start))
            line_start = start
            width = 0
        while len(word) > columns:
            lines.append((start, start + columns))
            start += columns
            word = word[columns:]
            line_start = start
        width += len(word) + len(spaces)
    lines.append((line_start, base + len(paragraph)))
    return lines


def line_index_for(lines: List[Line], offset: int) -> int:
    """Visual line holding the caret at ``offset``; a wrap point belongs to the next line."""
    index = 0
    for position, (start, _end) in enumerate(lines):
        if start <= offset:
            index = position
        else:
            break
    return index


@dataclass
class MirrorElement:
    """Off-screen copy of a surface: the text before the span, the span, the rest."""
    before: str
    selected: str
    after: str
    style: SurfaceStyle
    width: float

    @property
    def columns(self) -> int:
        usable = self.width - self.style.padding_left - self.style.padding_right
        return max(1, int(math.floor(usable / self.style.char_width)))

    @property
    def text(self) -> str:
        return self.before + self.selected + self.after

    def span_box(self) -> Rect:
        """Bounding box of the selected span relative to the mirror's top-left."""
        lines = wrap_pre(self.text, self.columns)
        start = len(self.before)
        end = start + len(self.selected)
        first = line_index_for(lines, start)
        last = line_index_for(lines, end - 1) if end > start else first
        style = self.style
        left = style.padding_left + self._column(lines[first], start) * style.char_width
        top = style.padding_top + first * style.line_height
        if last == first:
            right = style.padding_left + self._column(lines[last], end) * style.char_width
            width = max(0.0, right - left)
        else:
            # A span over several lines spans the full content width
            left = style.padding_left
            width = self.columns * style.char_width
        height = (last - first + 1) * style.line_height
        return Rect(left=left, top=top, width=width, height=height)

    def _column(self, line: Line, offset: int) -> int:
        return min(offset - line[0], self.columns)


class TextPositionMeasurer(ABC):
    """Capability to turn text offsets into viewport coordinates."""

    @abstractmethod
    def measure_range(self, surface: Surface, start: int, end: int) -> Rect:
        raise NotImplementedError

    def measure_text_position(self, surface: Surface, offset: int) -> Point:
        rect = self.measure_range(surface, offset, offset)
        return Point(x=rect.left, y=rect.top)

    def anchor_for(self, surface: Surface, start: int, end: int) -> Point:
        """Point the popup hangs from: bottom-left of the measured span."""
        rect = self.measure_range(surface, start, end)
        return Point(x=rect.left, y=rect.bottom)


class EventCoordinateMeasurer(TextPositionMeasurer):
    """Uses the coordinates of the pointer event that produced the selection."""

    def __init__(self, point: Point, line_height: Optional[float] = None) -> None:
        self.point = point
        self.line_height = line_height

    def measure_range(self, surface: Surface, start: int, end: int) -> Rect:
        height = self.line_height if self.line_height is not None else surface.style.line_height
        return Rect(left=self.point.x, top=self.point.y - height, width=0.0, height=height)

    def anchor_for(self, surface: Surface, start: int, end: int) -> Point:
        return self.point


class MirrorMeasurer(TextPositionMeasurer):
    """Measures against an off-screen mirror laid out with ``pre-wrap`` rules.

    Rich documents render their paragraph separator as a single block break,
    not a blank line, so the mirror collapses it to one newline.
    """

    def build_mirror(self, surface: Surface, start: int, end: int) -> MirrorElement:
        text = surface.get_text()
        start = max(0, min(start, len(text)))
        end = max(start, min(end, len(text)))
        parts = [text[:start], text[start:end], text[end:]]
        if isinstance(surface, RichTextDocument):
            parts = [part.replace(BLOCK_SEPARATOR, "\n") for part in parts]
        return MirrorElement(
            before=parts[0],
            selected=parts[1],
            after=parts[2],
            style=surface.style,
            width=surface.rect.width,
        )

    def measure_range(self, surface: Surface, start: int, end: int) -> Rect:
        mirror = self.build_mirror(surface, start, end)
        box = mirror.span_box()
        scroll_top = surface.scroll_top if isinstance(surface, PlainTextSurface) else 0.0
        rect = Rect(
            left=surface.rect.left + box.left,
            top=surface.rect.top + box.top - scroll_top,
            width=box.width,
            height=box.height,
        )
        logger.debug("Mirror measured [%s, %s) at %s", start, end, rect)
        return rect
