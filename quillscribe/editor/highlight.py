"""Visual lock on the range under transformation."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from quillscribe.editor.geometry import Rect
from quillscribe.editor.selection import SelectionRange
from quillscribe.editor.surfaces import ChangeEvent, PlainTextSurface, RichTextDocument, Surface, SurfaceStyle

HIGHLIGHT_CLASS = "ai-highlight"


@dataclass(frozen=True)
class OverlaySpan:
    text: str
    highlighted: bool = False


@dataclass
class OverlayNode:
    """Transparent-text copy of a plain surface with the locked span painted."""
    rect: Rect
    style: SurfaceStyle
    spans: List[OverlaySpan]
    scroll_top: float = 0.0
    text_color: str = "transparent"
    pointer_events: str = "none"

    @property
    def highlighted_text(self) -> str:
        return "".join(span.text for span in self.spans if span.highlighted)


@dataclass
class OverlayLayer:
    """The page-level container overlays are attached to."""
    nodes: List[OverlayNode] = field(default_factory=list)

    def append(self, node: OverlayNode) -> None:
        self.nodes.append(node)

    def remove(self, node: OverlayNode) -> None:
        if node in self.nodes:
            self.nodes.remove(node)


class Highlighter(ABC):
    @abstractmethod
    def show(self, selection: SelectionRange) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class OverlayHighlighter(Highlighter):
    """Highlight for plain surfaces, drawn in a separate overlay node."""

    def __init__(self, surface: PlainTextSurface, layer: OverlayLayer) -> None:
        self.surface = surface
        self.layer = layer
        self.node: Optional[OverlayNode] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def show(self, selection: SelectionRange) -> None:
        self.clear()
        text = self.surface.value
        node = OverlayNode(
            rect=self.surface.rect,
            style=self.surface.style,
            spans=[
                OverlaySpan(text[:selection.start]),
                OverlaySpan(text[selection.start:selection.end], highlighted=True),
                OverlaySpan(text[selection.end:]),
            ],
            scroll_top=self.surface.scroll_top,
        )
        self.layer.append(node)
        self.node = node
        self._unsubscribe = self.surface.subscribe(self._sync_scroll)

    def clear(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.node is not None:
            self.layer.remove(self.node)
            self.node = None

    def _sync_scroll(self, event: ChangeEvent) -> None:
        if event.kind == "scroll" and self.node is not None:
            self.node.scroll_top = self.surface.scroll_top


class DecorationHighlighter(Highlighter):
    """Highlight for rich documents as a transient decoration on the model."""

    def __init__(self, document: RichTextDocument) -> None:
        self.document = document

    def show(self, selection: SelectionRange) -> None:
        self.document.clear_decorations(HIGHLIGHT_CLASS)
        self.document.add_decoration(
            RichTextDocument.position_for_offset(selection.start),
            RichTextDocument.position_for_offset(selection.end),
            HIGHLIGHT_CLASS,
        )

    def clear(self) -> None:
        if self.document.is_live:
            self.document.clear_decorations(HIGHLIGHT_CLASS)


def highlighter_for(surface: Surface, layer: OverlayLayer) -> Highlighter:
    if isinstance(surface, RichTextDocument):
        return DecorationHighlighter(surface)
    if isinstance(surface, PlainTextSurface):
        return OverlayHighlighter(surface, layer)
    raise TypeError(f"Unsupported surface: {type(surface).__name__}")
