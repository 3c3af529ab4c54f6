"""
Edit applier: apply many insertions to one buffer without offset bookkeeping.

Edits are applied highest offset first. Inserting at a high offset never
shifts a lower one, so every recorded offset is still valid against the
buffer when its turn comes.
"""

import difflib
from typing import List, Sequence

from tracemark.exceptions import EditOutOfBoundsError
from .planner import Edit


def validate_edits(source: bytes, edits: Sequence[Edit]) -> None:
    """
    Check every edit against the buffer before anything is modified.

    Raises:
        EditOutOfBoundsError: If an offset is not an integer inside [0, len(source)].
    """
    length = len(source)
    for edit in edits:
        offset = edit.offset
        if isinstance(offset, bool) or not isinstance(offset, int) or not 0 <= offset <= length:
            raise EditOutOfBoundsError(offset, length)


def apply_edits(source: bytes, edits: Sequence[Edit]) -> bytes:
    """
    Return a new buffer with all edits inserted.

    Edits sharing an offset keep their discovery order in the output.
    """
    validate_edits(source, edits)

    buffer = bytearray(source)
    # Later-discovered edits at the same offset go in first so earlier ones end up in front.
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].offset, item[0]), reverse=True)
    for _, edit in ordered:
        buffer[edit.offset:edit.offset] = edit.text.encode("utf-8")
    return bytes(buffer)


def preview_edits(
    source: bytes,
    edits: Sequence[Edit],
    file_path: str = "<buffer>",
    max_diff_lines: int = 100,
) -> str:
    """
    Unified diff of the change the edits would make (for dry runs).

    Diffs longer than max_diff_lines are cut with a trailing notice.
    """
    original = source.decode("utf-8", errors="replace")
    modified = apply_edits(source, edits).decode("utf-8", errors="replace")

    diff_lines: List[str] = list(difflib.unified_diff(
        original.splitlines(keepends=True),
        modified.splitlines(keepends=True),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
    ))

    if len(diff_lines) > max_diff_lines:
        hidden = len(diff_lines) - max_diff_lines
        diff_lines = diff_lines[:max_diff_lines]
        diff_lines.append(f"\n[... {hidden} diff lines truncated for brevity ...]\n")

    return "".join(diff_lines)
