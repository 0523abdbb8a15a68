"""
File Filter

Decides which files of a pull request are worth parsing. Files matching
ignore patterns, files outside the extension allow-list and binary files are
excluded before any parsing work is spent on them.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from ..models.patch import FileInput
from ..models.results import FilterDecision, FilterReason


logger = logging.getLogger(__name__)

BINARY_EXTENSIONS = frozenset({
    'png', 'jpg', 'jpeg', 'gif', 'bmp', 'ico', 'svg', 'webp', 'tiff', 'tif', 'mp3', 'mp4', 'wav',
    'avi', 'mov', 'mkv', 'flac', 'ogg', 'webm', 'zip', 'tar', 'gz', 'bz2', 'xz', '7z', 'rar',
    'pdf', 'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx', 'exe', 'dll', 'so', 'dylib', 'bin', 'obj',
    'o', 'a', 'lib', 'woff', 'woff2', 'ttf', 'eot', 'otf', 'pyc', 'pyo', 'class', 'jar', 'sqlite',
    'db', 'dat',
})

# Same prefix size git inspects when guessing whether content is binary
BINARY_SAMPLE_SIZE = 8000


def get_file_extension(file_path: str) -> Optional[str]:
    """
    Get lowercase file extension from file path.

    Args:
        file_path: Path to file

    Returns:
        Extension without the dot, or None
    """
    name = file_path.rsplit('/', 1)[-1]
    if '.' not in name.lstrip('.'):
        return None

    return name.rsplit('.', 1)[-1].lower()


def is_binary_path(file_path: str) -> bool:
    """Check if file has a known binary extension."""
    return get_file_extension(file_path) in BINARY_EXTENSIONS


def looks_binary(content: Optional[str]) -> bool:
    """Check for a NUL byte within the sampled prefix of the content."""
    if not content:
        return False
    return '\x00' in content[:BINARY_SAMPLE_SIZE]


def glob_to_regex(glob: str) -> str:
    """
    Convert a glob pattern to an anchored regex string.

    Supports ``*`` (within one path segment), ``**`` (across segments),
    ``**/`` (zero or more leading directories), ``?`` and ``[...]`` classes.
    """
    regex = ['^']
    i = 0
    while i < len(glob):
        c = glob[i]
        if c == '*':
            if glob[i + 1:i + 2] == '*':
                i += 1
                if glob[i + 1:i + 2] == '/':
                    i += 1
                    regex.append('(?:.*/)?')
                else:
                    regex.append('.*')
            else:
                regex.append('[^/]*')
        elif c == '?':
            regex.append('[^/]')
        elif c == '[':
            end = glob.find(']', i + 1)
            if end == -1:
                regex.append(re.escape(c))
            else:
                body = glob[i + 1:end]
                if body.startswith('!'):
                    body = '^' + body[1:]
                regex.append(f"[{body}]")
                i = end
        else:
            regex.append(re.escape(c))
        i += 1

    regex.append('$')
    return ''.join(regex)


@dataclass(frozen=True)
class IgnoreMatcher:
    """
    Immutable set of compiled ignore patterns and the extension allow-list.

    Built once when configuration loads and passed through the pipeline
    as part of the request context.
    """
    patterns: Tuple[Pattern, ...] = field(default_factory=tuple)
    allowed_extensions: Optional[frozenset] = None

    @classmethod
    def compile(
        cls,
        globs: Iterable[str] = (),
        regexes: Iterable[str] = (),
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> "IgnoreMatcher":
        """
        Compile glob and regex patterns.

        Invalid regexes are logged and skipped rather than failing the
        whole configuration.
        """
        patterns: List[Pattern] = []

        for pattern in regexes:
            try:
                patterns.append(re.compile(pattern))
            except re.error as e:
                logger.warning(f"Invalid ignore regex pattern {pattern!r}: {e}")

        for glob in globs:
            candidates = [glob]
            # `**/x` must also cover `x` at the repository root
            if glob.startswith('**/'):
                candidates.append(glob[3:])
            for candidate in candidates:
                try:
                    patterns.append(re.compile(glob_to_regex(candidate)))
                except re.error as e:
                    logger.warning(f"Invalid ignore glob pattern {glob!r}: {e}")

        allowed = None
        if allowed_extensions:
            allowed = frozenset(ext.lower().lstrip('.') for ext in allowed_extensions if ext.strip())

        return cls(patterns=tuple(patterns), allowed_extensions=allowed or None)

    def match(self, file_path: str) -> Optional[str]:
        """Return the first ignore pattern matching the path, if any."""
        for pattern in self.patterns:
            if pattern.search(file_path):
                return pattern.pattern
        return None

    def allows_extension(self, file_path: str) -> bool:
        if self.allowed_extensions is None:
            return True
        return get_file_extension(file_path) in self.allowed_extensions


class FileFilter:
    """
    Admits or rejects a file's diff before parsing.

    Exclusion order, first match wins:
    1. ignore glob/regex pattern
    2. extension missing from a configured allow-list
    3. binary content or known binary extension
    """

    def __init__(self, matcher: Optional[IgnoreMatcher] = None):
        """
        Initialize file filter.

        Args:
            matcher: Compiled ignore patterns (default: ignore nothing)
        """
        self.matcher = matcher or IgnoreMatcher()

    def decide(self, path: str, sampled_content: Optional[str] = None) -> FilterDecision:
        """
        Decide whether a file enters the pipeline.

        Args:
            path: Repository path of the file
            sampled_content: File content (or diff text) used for binary sniffing

        Returns:
            FilterDecision for the file
        """
        pattern = self.matcher.match(path)
        if pattern is not None:
            return FilterDecision.exclude(FilterReason.IGNORED, pattern)

        if not self.matcher.allows_extension(path):
            return FilterDecision.exclude(
                FilterReason.EXTENSION_NOT_ALLOWED, get_file_extension(path) or ''
            )

        if is_binary_path(path):
            return FilterDecision.exclude(FilterReason.BINARY, 'extension')

        if looks_binary(sampled_content):
            return FilterDecision.exclude(FilterReason.BINARY, 'content')

        return FilterDecision.include()

    def filter_files(
        self, files: Sequence[FileInput]
    ) -> Tuple[List[FileInput], List[Tuple[str, FilterDecision]]]:
        """
        Filter a list of files.

        Args:
            files: Provider file records

        Returns:
            Tuple of (included files in input order, decision per file)
        """
        included = []
        decisions = []

        for file in files:
            decision = self.decide(file.path, file.sampled_content)
            decisions.append((file.path, decision))
            if decision.included:
                included.append(file)
            else:
                logger.debug(f"Filtered {file.path}: {decision.reason.value} ({decision.detail})")

        logger.info(f"Filtered to {len(included)} of {len(files)} files")
        return included, decisions


def decide(path: str, sampled_content: Optional[str], matcher: IgnoreMatcher) -> FilterDecision:
    """Module-level shortcut for a single filter decision."""
    return FileFilter(matcher).decide(path, sampled_content)
