"""Apply batches of text edits expressed in original-buffer coordinates."""

from typing import Iterable, List

from ..core.types import EditSpan


def apply_edits(text: str, edits: Iterable[EditSpan]) -> str:
    """Apply ``edits`` to ``text`` and return the new text.

    Every edit addresses the original text. Edits are applied in ascending
    order while a running sum of the length changes so far shifts each later
    edit, so replacements of differing lengths compose correctly.

    Raises:
        ValueError: An edit is out of bounds or overlaps another one.
    """
    ordered: List[EditSpan] = sorted(edits, key=lambda e: (e.start, e.end))

    previous_end = 0
    for edit in ordered:
        if edit.start < 0 or edit.end < edit.start or edit.end > len(text):
            raise ValueError(f"Edit [{edit.start}, {edit.end}) is outside the buffer (length {len(text)})")
        if edit.start < previous_end:
            raise ValueError(f"Edit [{edit.start}, {edit.end}) overlaps a previous edit ending at {previous_end}")
        previous_end = edit.end

    delta = 0
    for edit in ordered:
        start, end = edit.start + delta, edit.end + delta
        text = text[:start] + edit.replacement + text[end:]
        delta += edit.delta
    return text
