"""Tunables of the editor engine."""
from dataclasses import dataclass

from quillscribe.editor.geometry import Size


@dataclass(frozen=True)
class EditorConfig:
    # Pointer travel below this (px, each axis) is a click, not a selection
    click_threshold: float = 5.0
    # Lets the host editor finalize its own selection before it is read
    settle_delay: float = 0.010
    viewport_margin: float = 20.0
    min_top: float = 10.0
    above_margin: float = 8.0
    below_offset: float = 8.0
    scribe_popup_size: Size = Size(width=330.0, height=110.0)
    write_popup_size: Size = Size(width=300.0, height=80.0)
    word_limit: int = 2500
