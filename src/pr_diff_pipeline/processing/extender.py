"""
Context Extender

Widens each hunk's visible window with unchanged lines taken from the full
new-file text, then merges hunks whose windows now touch or overlap.
"""

import logging
from typing import List, Optional, Sequence

from ..models.patch import DiffLine, Hunk
from .parser import split_lines


logger = logging.getLogger(__name__)


class ContextExtender:
    """
    Extends hunks with surrounding context lines.

    Extension is best-effort: without the full file text the hunks are
    returned unchanged. Windows are clamped to the file and to the
    neighbouring hunks, so extension never crosses a file boundary and never
    presents a changed line as context.
    """

    def __init__(self, extra_lines_before: int = 0, extra_lines_after: int = 0):
        """
        Initialize context extender.

        Args:
            extra_lines_before: Context lines to add before each hunk
            extra_lines_after: Context lines to add after each hunk
        """
        if extra_lines_before < 0 or extra_lines_after < 0:
            raise ValueError("Extra context lines must be non-negative")
        self.extra_lines_before = extra_lines_before
        self.extra_lines_after = extra_lines_after

    def extend(self, hunks: Sequence[Hunk], full_new_file_text: Optional[str]) -> List[Hunk]:
        """
        Extend and merge hunks.

        Args:
            hunks: Hunks of one file in document order
            full_new_file_text: Complete new-side file content, if available

        Returns:
            New list of hunks, non-overlapping and ordered
        """
        return extend(hunks, full_new_file_text, self.extra_lines_before, self.extra_lines_after)


def extend(
    hunks: Sequence[Hunk],
    full_new_file_text: Optional[str],
    before: int,
    after: int,
) -> List[Hunk]:
    """
    Extend each hunk by up to `before`/`after` lines and merge touching hunks.

    Args:
        hunks: Hunks of one file in document order
        full_new_file_text: Complete new-side file content, or None
        before: Lines to pull in before each hunk
        after: Lines to pull in after each hunk

    Returns:
        New list of hunks
    """
    if before < 0 or after < 0:
        raise ValueError("Extra context lines must be non-negative")

    if not hunks or full_new_file_text is None or (before == 0 and after == 0):
        return list(hunks)

    file_lines = split_lines(full_new_file_text)
    file_length = len(file_lines)

    extended = []
    for i, hunk in enumerate(hunks):
        prev_last_new = hunks[i - 1].last_new if i > 0 else 0
        next_first_new = hunks[i + 1].first_new if i + 1 < len(hunks) else file_length + 1

        lines = (
            _lines_before(hunk, file_lines, before, prev_last_new)
            + list(hunk.lines)
            + _lines_after(hunk, file_lines, after, next_first_new)
        )
        extended.append(
            Hunk.from_lines(lines, hunk.old_start, hunk.new_start, hunk.section_header, hunk.numbering)
        )

    merged = merge_hunks(extended)
    logger.debug(f"Extended {len(hunks)} hunks into {len(merged)} (before={before}, after={after})")
    return merged


def _lines_before(hunk: Hunk, file_lines: List[str], before: int, prev_last_new: int) -> List[DiffLine]:
    first_new = hunk.first_new
    first_old = hunk.first_old
    count = min(before, first_new - 1 - prev_last_new, first_old - 1)
    lines = []
    for new_number in range(first_new - max(count, 0), first_new):
        # File text shorter than the diff claims: never read past its end
        if new_number > len(file_lines):
            break
        old_number = first_old - (first_new - new_number)
        lines.append(DiffLine.context(old_number, new_number, file_lines[new_number - 1]))
    return lines


def _lines_after(hunk: Hunk, file_lines: List[str], after: int, next_first_new: int) -> List[DiffLine]:
    last_new = hunk.last_new
    last_old = hunk.last_old
    end = min(last_new + after, next_first_new - 1, len(file_lines))
    return [
        DiffLine.context(last_old + (new_number - last_new), new_number, file_lines[new_number - 1])
        for new_number in range(last_new + 1, end + 1)
    ]


def merge_hunks(hunks: Sequence[Hunk]) -> List[Hunk]:
    """
    Merge adjacent or overlapping hunks.

    Lines already present in the earlier hunk (by old or new line number)
    are dropped from the later one so no line is shown twice.
    """
    merged: List[Hunk] = []
    for hunk in hunks:
        if merged and hunk.first_new <= merged[-1].last_new + 1:
            merged[-1] = _combine(merged[-1], hunk)
        else:
            merged.append(hunk)
    return merged


def _combine(first: Hunk, second: Hunk) -> Hunk:
    last_old = max((l.old_number for l in first.lines if l.old_number is not None), default=0)
    last_new = max((l.new_number for l in first.lines if l.new_number is not None), default=0)

    tail = [
        line for line in second.lines
        if not (line.old_number is not None and line.old_number <= last_old)
        and not (line.new_number is not None and line.new_number <= last_new)
    ]
    return Hunk.from_lines(
        list(first.lines) + tail,
        first.old_start,
        first.new_start,
        first.section_header,
        first.numbering,
    )
