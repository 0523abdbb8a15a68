"""
Hunk Parser

Parses one file's unified diff text into structured hunks with original and
new line numbers. A malformed diff raises ParseError scoped to that file so
the caller can drop the file and carry on with the rest of the pull request.
"""

import re
import logging
from typing import List, Optional

from ..models.patch import DiffLine, FileInput, FilePatch, Hunk, NumberingMode


logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    """
    Split text on newlines only.

    A trailing newline does not start an extra line and one trailing carriage
    return is dropped per line. Form feeds and other Unicode line separators
    stay inside the line they appear in.
    """
    if not text:
        return []

    lines = text.split('\n')
    if text.endswith('\n'):
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


class DiffPipelineError(Exception):
    """Base error for diff pipeline classifications"""


class ParseError(DiffPipelineError):
    """Unified diff of a single file could not be parsed"""
    def __init__(self, message: str, path: Optional[str] = None, line_number: Optional[int] = None):
        location = f"{path}:{line_number}" if path and line_number else (path or "")
        super().__init__(f"{location}: {message}" if location else message)
        self.path = path
        self.line_number = line_number
        self.reason = message


class HunkParser:
    """
    Parser for unified diff hunks.

    Recognizes the header grammar ``@@ -a[,b] +c[,d] @@ [section]`` and
    classifies following lines by their leading marker.
    """

    # Git extended header lines that may precede the first hunk
    FILE_HEADER_PREFIXES = (
        'diff --git ', 'index ', '--- ', '+++ ', 'old mode ', 'new mode ',
        'deleted file mode ', 'new file mode ', 'similarity index ', 'dissimilarity index ',
        'rename from ', 'rename to ', 'copy from ', 'copy to ',
    )

    def __init__(self):
        """Initialize hunk parser."""
        self.hunk_header_pattern = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@ ?(.*)$')
        self.binary_file_pattern = re.compile(r'^(Binary files .* differ|GIT binary patch)')
        self.no_newline_marker = '\\ No newline at end of file'

    def parse(
        self,
        raw_diff_text: str,
        old_path: Optional[str] = None,
        new_path: Optional[str] = None,
        numbering_mode: NumberingMode = NumberingMode.NUMBERED,
    ) -> List[Hunk]:
        """
        Parse unified diff text into hunks.

        Args:
            raw_diff_text: Unified diff of one file
            old_path: Path before the change (for error reporting)
            new_path: Path after the change (for error reporting)
            numbering_mode: How rendered hunks annotate line numbers

        Returns:
            Hunks in document order

        Raises:
            ParseError: On a malformed hunk header or unrecognized line marker
        """
        path = new_path or old_path
        hunks: List[Hunk] = []
        if not raw_diff_text:
            return hunks

        lines = split_lines(raw_diff_text)
        # Trailing blank lines carry no diff content
        while lines and not lines[-1]:
            lines.pop()

        header = None
        body: List[DiffLine] = []
        old_no = new_no = 0

        for index, line in enumerate(lines, start=1):
            if line.startswith('@@'):
                if header is not None:
                    hunks.append(self._finish_hunk(header, body, numbering_mode, path))
                header = self._parse_header(line, path, index)
                old_no, new_no = header[0], header[2]
                # A zero-count side starts counting after the anchor line
                if header[1] == 0:
                    old_no += 1
                if header[3] == 0:
                    new_no += 1
                body = []
                continue

            if header is None:
                if line.startswith(self.FILE_HEADER_PREFIXES) or self.binary_file_pattern.match(line):
                    continue
                raise ParseError(f"unexpected content before first hunk header: {line[:40]!r}", path, index)

            if line.startswith(self.no_newline_marker):
                continue

            marker, text = (line[0], line[1:]) if line else (' ', '')
            if marker == ' ':
                body.append(DiffLine.context(old_no, new_no, text))
                old_no += 1
                new_no += 1
            elif marker == '+':
                body.append(DiffLine.added(new_no, text))
                new_no += 1
            elif marker == '-':
                body.append(DiffLine.removed(old_no, text))
                old_no += 1
            elif line.startswith(self.FILE_HEADER_PREFIXES):
                raise ParseError("file header inside hunk; one diff per file expected", path, index)
            else:
                raise ParseError(f"unrecognized line marker {marker!r}", path, index)

        if header is not None:
            hunks.append(self._finish_hunk(header, body, numbering_mode, path))

        logger.debug(f"Parsed {len(hunks)} hunks for {path}")
        return hunks

    def _parse_header(self, line: str, path: Optional[str], index: int) -> tuple:
        """Parse a hunk header into (old_start, old_count, new_start, new_count, section)."""
        match = self.hunk_header_pattern.match(line)
        if not match:
            raise ParseError(f"malformed hunk header {line[:60]!r}", path, index)

        old_start = int(match.group(1))
        old_count = int(match.group(2)) if match.group(2) is not None else 1
        new_start = int(match.group(3))
        new_count = int(match.group(4)) if match.group(4) is not None else 1
        return old_start, old_count, new_start, new_count, match.group(5).strip()

    def _finish_hunk(
        self, header: tuple, body: List[DiffLine], numbering_mode: NumberingMode, path: Optional[str]
    ) -> Hunk:
        old_start, old_count, new_start, new_count, section = header
        hunk = Hunk.from_lines(body, old_start, new_start, section, numbering_mode)
        if (hunk.old_count, hunk.new_count) != (old_count, new_count):
            # Hosting platforms truncate very long patches; trust the lines we saw
            logger.debug(
                f"Hunk counts in {path} differ from header "
                f"(-{old_count} +{new_count} declared, -{hunk.old_count} +{hunk.new_count} seen)"
            )
        return hunk

    def is_binary_diff(self, raw_diff_text: str) -> bool:
        """Check whether the diff text describes a binary file."""
        return any(self.binary_file_pattern.match(line) for line in split_lines(raw_diff_text)[:10])

    def parse_file(self, file: FileInput, numbering_mode: NumberingMode = NumberingMode.NUMBERED) -> FilePatch:
        """
        Parse a provider file record into a FilePatch.

        Args:
            file: Provider file record with raw diff text
            numbering_mode: How rendered hunks annotate line numbers

        Returns:
            Structured FilePatch

        Raises:
            ParseError: When the diff text is malformed
        """
        logger.debug(f"Parsing file diff: {file.path}")

        if file.patch and self.is_binary_diff(file.patch):
            logger.debug(f"Binary diff for {file.path}")
            return FilePatch(path=file.path, old_path=file.old_path, is_binary=True, edit_type=file.edit_type)

        hunks = self.parse(file.patch, file.old_path, file.path, numbering_mode)
        return FilePatch(
            path=file.path,
            old_path=file.old_path,
            hunks=tuple(hunks),
            edit_type=file.edit_type,
        )


def parse(
    raw_diff_text: str,
    old_path: Optional[str] = None,
    new_path: Optional[str] = None,
    numbering_mode: NumberingMode = NumberingMode.NUMBERED,
) -> List[Hunk]:
    """Module-level shortcut for HunkParser().parse."""
    return HunkParser().parse(raw_diff_text, old_path, new_path, numbering_mode)
