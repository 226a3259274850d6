"""Unified-diff hunk parsing and hunk scoping of change records."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from .models import ChangeRecord, DiffHunk, DiffLine, LineRange

logger = logging.getLogger(__name__)

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def _line_range(start: str, length: Optional[str]) -> LineRange:
    first = int(start)
    count = int(length) if length is not None else 1
    # "-12,0" is a pure insertion after line 12; keep the range non-empty.
    first = max(first, 1)
    return LineRange(first, first + max(count - 1, 0))


def parse_unified_diff(patch: str, file: str) -> list[DiffHunk]:
    """Parse ``@@`` hunks and their +/- lines; unrecognized lines are skipped."""
    hunks: list[DiffHunk] = []
    current: Optional[dict] = None

    def flush() -> None:
        if current is not None:
            hunks.append(
                DiffHunk(
                    file=file,
                    base_range=current["base"],
                    head_range=current["head"],
                    added_lines=tuple(current["added"]),
                    removed_lines=tuple(current["removed"]),
                )
            )

    for line in patch.splitlines():
        match = _HUNK_HEADER.match(line)
        if match:
            flush()
            base = _line_range(match.group(1), match.group(2))
            head = _line_range(match.group(3), match.group(4))
            current = {
                "base": base,
                "head": head,
                "added": [],
                "removed": [],
                "base_line": int(match.group(1)),
                "head_line": int(match.group(3)),
            }
            continue
        if current is None:
            continue
        if line.startswith("+") and not line.startswith("+++"):
            current["added"].append(DiffLine(current["head_line"], line[1:]))
            current["head_line"] += 1
        elif line.startswith("-") and not line.startswith("---"):
            current["removed"].append(DiffLine(current["base_line"], line[1:]))
            current["base_line"] += 1
        elif line.startswith(" "):
            current["head_line"] += 1
            current["base_line"] += 1
    flush()
    return hunks


def whole_file_hunk(base_text: str, head_text: str, file: str) -> DiffHunk:
    base_lines = max(len(base_text.splitlines()), 1)
    head_lines = max(len(head_text.splitlines()), 1)
    return DiffHunk(file=file, base_range=LineRange(1, base_lines), head_range=LineRange(1, head_lines))


def build_hunks(
    base_text: str, head_text: str, file: str, patch: Optional[str] = None
) -> list[DiffHunk]:
    """Hunks from ``patch``, or one whole-file hunk when there is nothing usable."""
    if patch:
        try:
            hunks = parse_unified_diff(patch, file)
        except ValueError as e:
            logger.debug(f"Unparseable patch for {file}: {e}")
            hunks = []
        if hunks:
            return hunks
    return [whole_file_hunk(base_text, head_text, file)]


def in_hunks(record: ChangeRecord, hunks: Iterable[DiffHunk]) -> bool:
    """True when the record's line span touches a hunk.

    Removal kinds are located in the base version, everything else in the head.
    """
    if record.is_file_level:
        return True
    removal = record.kind.is_removal
    for hunk in hunks:
        line_range = hunk.base_range if removal else hunk.head_range
        if line_range.overlaps(record.start_line, record.end_line):
            return True
    return False


def scope_records(records: Iterable[ChangeRecord], hunks: Iterable[DiffHunk]) -> list[ChangeRecord]:
    hunks = list(hunks)
    if not hunks:
        return list(records)
    return [r for r in records if in_hunks(r, hunks)]
