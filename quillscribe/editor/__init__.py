"""Headless editor engine: selection, popups, highlight and replacement."""
from quillscribe.editor.client import AIServiceClient, GenerationFailed, NoteIngestionFailed, TransformFailed
from quillscribe.editor.popup import PopupCoordinator, PopupKind, PopupStateStore, PositionAnchor, place_popup
from quillscribe.editor.selection import PointerEvent, SelectionRange, SelectionTracker
from quillscribe.editor.session import EditorError, EditorSession
from quillscribe.editor.surfaces import FormattingState, PlainTextSurface, RichTextDocument

__all__ = [
    "AIServiceClient",
    "EditorError",
    "EditorSession",
    "FormattingState",
    "GenerationFailed",
    "NoteIngestionFailed",
    "PlainTextSurface",
    "PointerEvent",
    "PopupCoordinator",
    "PopupKind",
    "PopupStateStore",
    "PositionAnchor",
    "RichTextDocument",
    "SelectionRange",
    "SelectionTracker",
    "TransformFailed",
    "place_popup",
]
