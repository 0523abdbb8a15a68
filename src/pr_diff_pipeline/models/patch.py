"""
Patch Data Models

diff 라인, 헝크, 파일 패치 데이터 모델들
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class LineKind(Enum):
    """diff 라인 종류"""
    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"

    @property
    def marker(self) -> str:
        return {LineKind.CONTEXT: " ", LineKind.ADDED: "+", LineKind.REMOVED: "-"}[self]


class NumberingMode(Enum):
    """헝크 출력 시 라인 번호 표기 방식"""
    NUMBERED = "numbered"  # 리뷰용: 새 파일 라인 번호 표기
    PLAIN = "plain"  # 패치 생성용: 번호 없음


class EditType(Enum):
    """파일 변경 유형"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status: Optional[str]) -> "EditType":
        """GitHub 파일 상태를 변경 유형으로 변환"""
        status_mapping = {
            'added': cls.ADDED,
            'removed': cls.DELETED,
            'deleted': cls.DELETED,
            'modified': cls.MODIFIED,
            'changed': cls.MODIFIED,
            'renamed': cls.RENAMED,
            'copied': cls.ADDED,
        }
        return status_mapping.get((status or '').lower(), cls.UNKNOWN)


@dataclass(frozen=True)
class DiffLine:
    """헝크 내 개별 라인"""
    kind: LineKind
    old_number: Optional[int]
    new_number: Optional[int]
    text: str

    def __post_init__(self):
        """데이터 검증"""
        has_old = self.kind in (LineKind.CONTEXT, LineKind.REMOVED)
        has_new = self.kind in (LineKind.CONTEXT, LineKind.ADDED)
        if has_old != (self.old_number is not None):
            raise ValueError(f"{self.kind.value} line must {'' if has_old else 'not '}have an old line number")
        if has_new != (self.new_number is not None):
            raise ValueError(f"{self.kind.value} line must {'' if has_new else 'not '}have a new line number")

    @classmethod
    def context(cls, old_number: int, new_number: int, text: str) -> "DiffLine":
        return cls(LineKind.CONTEXT, old_number, new_number, text)

    @classmethod
    def added(cls, new_number: int, text: str) -> "DiffLine":
        return cls(LineKind.ADDED, None, new_number, text)

    @classmethod
    def removed(cls, old_number: int, text: str) -> "DiffLine":
        return cls(LineKind.REMOVED, old_number, None, text)


@dataclass(frozen=True)
class Hunk:
    """unified diff 헝크"""
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[DiffLine, ...]
    section_header: str = ""
    numbering: NumberingMode = NumberingMode.NUMBERED

    def __post_init__(self):
        """데이터 검증"""
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_count != sum(1 for l in self.lines if l.old_number is not None):
            raise ValueError("old_count must match the lines consuming the old counter")
        if self.new_count != sum(1 for l in self.lines if l.new_number is not None):
            raise ValueError("new_count must match the lines consuming the new counter")

    @classmethod
    def from_lines(
        cls,
        lines: Sequence[DiffLine],
        old_start: int,
        new_start: int,
        section_header: str = "",
        numbering: NumberingMode = NumberingMode.NUMBERED,
    ) -> "Hunk":
        """라인 목록에서 헤더 값을 다시 계산하여 헝크 생성

        old_start/new_start는 해당 쪽 라인이 하나도 없을 때만 사용된다.
        """
        lines = tuple(lines)
        old_numbers = [l.old_number for l in lines if l.old_number is not None]
        new_numbers = [l.new_number for l in lines if l.new_number is not None]
        return cls(
            old_start=old_numbers[0] if old_numbers else old_start,
            old_count=len(old_numbers),
            new_start=new_numbers[0] if new_numbers else new_start,
            new_count=len(new_numbers),
            lines=lines,
            section_header=section_header,
            numbering=numbering,
        )

    @property
    def header(self) -> str:
        """unified diff 헝크 헤더 문자열"""
        header = f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"
        if self.section_header:
            header += f" {self.section_header}"
        return header

    @property
    def first_new(self) -> int:
        """새 파일 기준 첫 라인 (새 쪽 라인이 없으면 삽입 위치 다음 라인)"""
        return self.new_start if self.new_count else self.new_start + 1

    @property
    def last_new(self) -> int:
        return self.new_start + self.new_count - 1 if self.new_count else self.new_start

    @property
    def first_old(self) -> int:
        return self.old_start if self.old_count else self.old_start + 1

    @property
    def last_old(self) -> int:
        return self.old_start + self.old_count - 1 if self.old_count else self.old_start

    @property
    def added_lines(self) -> List[DiffLine]:
        return [l for l in self.lines if l.kind is LineKind.ADDED]

    @property
    def removed_lines(self) -> List[DiffLine]:
        return [l for l in self.lines if l.kind is LineKind.REMOVED]


@dataclass(frozen=True)
class FilePatch:
    """파일 단위 패치 (파이프라인 내에서 변경되지 않음)"""
    path: str
    old_path: Optional[str]
    hunks: Tuple[Hunk, ...] = field(default_factory=tuple)
    is_binary: bool = False
    edit_type: EditType = EditType.MODIFIED

    def __post_init__(self):
        """데이터 검증"""
        if not self.path.strip():
            raise ValueError("File path cannot be empty")

    def with_hunks(self, hunks: Sequence[Hunk]) -> "FilePatch":
        """헝크를 교체한 새 패치 반환"""
        return replace(self, hunks=tuple(hunks))

    def truncated(self, keep: int) -> "FilePatch":
        """앞쪽 keep개의 헝크만 남긴 새 패치 반환"""
        return replace(self, hunks=self.hunks[:max(keep, 0)])

    @property
    def hunk_count(self) -> int:
        return len(self.hunks)

    @property
    def additions(self) -> int:
        return sum(len(h.added_lines) for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(len(h.removed_lines) for h in self.hunks)


@dataclass(frozen=True)
class FileInput:
    """diff 제공자가 전달하는 파일 단위 입력"""
    path: str
    patch: str
    old_path: Optional[str] = None
    new_content: Optional[str] = None
    edit_type: EditType = EditType.MODIFIED

    @property
    def sampled_content(self) -> str:
        """바이너리 판별용 내용 (전체 파일이 없으면 패치 텍스트)"""
        return self.new_content if self.new_content is not None else self.patch
