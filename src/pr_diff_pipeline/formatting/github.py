"""
GitHub Inline Comment Placement

Maps line references from a model response back onto the hunks that were
actually sent, so review comments land on lines GitHub can anchor.
"""

import logging
from typing import Dict, Iterable, Optional

from ..models.patch import FilePatch, Hunk
from ..models.review import InlineComment


logger = logging.getLogger(__name__)


class InlineCommentLocator:
    """
    Resolves (path, line) references against kept patches.

    Only hunks present in the compressed diff are considered; a reference
    into an omitted file or hunk resolves to None.
    """

    def __init__(self, patches: Iterable[FilePatch]):
        """
        Initialize comment locator.

        Args:
            patches: Patches kept by compression (rendered to the model)
        """
        self._patches: Dict[str, FilePatch] = {patch.path: patch for patch in patches}

    def locate(self, path: str, line: int, start_line: Optional[int] = None) -> Optional[InlineComment]:
        """
        Place a comment on a new-side line.

        Args:
            path: File path as shown in the diff
            line: New-file line number (last line of a range)
            start_line: First line of a multi-line range

        Returns:
            InlineComment on the RIGHT side, or None if not in a kept hunk
        """
        hunk = self._hunk_for(path, line, new_side=True)
        if hunk is None:
            logger.debug(f"Line {line} of {path} is outside every kept hunk")
            return None

        if start_line is not None and start_line != line:
            if start_line > line or not self._in_hunk(hunk, start_line, new_side=True):
                # GitHub rejects ranges spanning hunks; fall back to a single line
                logger.debug(f"Range {start_line}-{line} of {path} not within one hunk")
                start_line = None

        return InlineComment(path=path, line=line, side='RIGHT', start_line=start_line)

    def locate_old(self, path: str, line: int) -> Optional[InlineComment]:
        """
        Place a comment on a removed (old-side) line.

        Args:
            path: File path as shown in the diff
            line: Old-file line number

        Returns:
            InlineComment on the LEFT side, or None if not in a kept hunk
        """
        if self._hunk_for(path, line, new_side=False) is None:
            logger.debug(f"Old line {line} of {path} is outside every kept hunk")
            return None
        return InlineComment(path=path, line=line, side='LEFT')

    def _hunk_for(self, path: str, line: int, new_side: bool) -> Optional[Hunk]:
        patch = self._patches.get(path)
        if patch is None:
            return None
        for hunk in patch.hunks:
            if self._in_hunk(hunk, line, new_side):
                return hunk
        return None

    @staticmethod
    def _in_hunk(hunk: Hunk, line: int, new_side: bool) -> bool:
        if new_side:
            return any(l.new_number == line for l in hunk.lines)
        return any(l.old_number == line for l in hunk.removed_lines)
