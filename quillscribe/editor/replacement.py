"""Writes model output back into the live surface."""
from __future__ import annotations

import logging

from quillscribe.editor.selection import SelectionRange
from quillscribe.editor.surfaces import PlainTextSurface, RichTextDocument, Surface

logger = logging.getLogger(__name__)


class ReplacementEngine:
    """Applies text over a stored range.

    Offsets are the ones captured when the request was sent; if the user
    edited the surface meanwhile they may be stale and the last write wins.
    A surface that has been torn down is left alone.
    """

    def replace(self, surface: Surface, selection: SelectionRange, text: str) -> bool:
        if not surface.is_live:
            logger.info("Surface gone before the response arrived; dropping replacement")
            return False
        if isinstance(surface, RichTextDocument):
            self._replace_rich(surface, selection, text)
        elif isinstance(surface, PlainTextSurface):
            self._replace_plain(surface, selection, text)
        else:
            raise TypeError(f"Unsupported surface: {type(surface).__name__}")
        return True

    def insert(self, surface: Surface, offset: int, text: str) -> bool:
        return self.replace(surface, SelectionRange(offset, offset), text)

    def _replace_plain(self, surface: PlainTextSurface, selection: SelectionRange, text: str) -> None:
        value = surface.value
        surface.value = value[:selection.start] + text + value[selection.end:]
        surface.dispatch_input()
        surface.focus()
        surface.set_caret(selection.start + len(text))

    def _replace_rich(self, document: RichTextDocument, selection: SelectionRange, text: str) -> None:
        start = RichTextDocument.position_for_offset(selection.start)
        end = RichTextDocument.position_for_offset(selection.end)
        document.delete_range(start, end)
        document.insert_text(start, text)
        document.focus()
        # Reselect so formatting controls reflect the inserted text
        document.set_selection(start, start + len(text))
