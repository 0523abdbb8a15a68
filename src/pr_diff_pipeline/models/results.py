"""
Pipeline Result Models

필터 결정, 토큰 예산, 압축 결과 데이터 모델들
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .patch import FilePatch


class FilterReason(Enum):
    """파일 필터 결정 사유"""
    INCLUDED = "included"
    IGNORED = "ignored"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"
    BINARY = "binary"


@dataclass(frozen=True)
class FilterDecision:
    """파일 단위 필터 결정 (한 번 내려지면 다시 검토하지 않음)"""
    included: bool
    reason: FilterReason
    detail: Optional[str] = None

    def __post_init__(self):
        """데이터 검증"""
        if self.included != (self.reason is FilterReason.INCLUDED):
            raise ValueError(f"Inconsistent filter decision: included={self.included}, reason={self.reason.value}")

    @classmethod
    def include(cls) -> "FilterDecision":
        return cls(True, FilterReason.INCLUDED)

    @classmethod
    def exclude(cls, reason: FilterReason, detail: Optional[str] = None) -> "FilterDecision":
        return cls(False, reason, detail)


class FailureReason(Enum):
    """파일 처리 실패 사유"""
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class FileFailure:
    """파이프라인에서 제외된 파일의 실패 기록"""
    path: str
    reason: FailureReason
    detail: str


class TokenizerKind(Enum):
    """토크나이저 종류 (설정 시점에 한 번 결정)"""
    O200K_BASE = "o200k_base"
    CL100K_BASE = "cl100k_base"
    CHAR_RATIO = "char_ratio"


@dataclass(frozen=True)
class ModelDescriptor:
    """모델 정보: 컨텍스트 윈도우 크기와 토크나이저 종류"""
    model_id: str
    max_context: int
    tokenizer_kind: TokenizerKind

    def __post_init__(self):
        """데이터 검증"""
        if self.max_context <= 0:
            raise ValueError("max_context must be positive")


@dataclass(frozen=True)
class TokenBudget:
    """요청 단위 토큰 예산"""
    limit: int
    model_id: str
    tokenizer_kind: Optional[TokenizerKind] = None  # 없으면 model_id로 결정

    def __post_init__(self):
        """데이터 검증"""
        if self.limit < 0:
            raise ValueError("Token budget limit must be non-negative")

    @classmethod
    def for_model(cls, model: ModelDescriptor, output_buffer_tokens: int = 0) -> "TokenBudget":
        """모델 컨텍스트 크기에서 출력 버퍼를 뺀 예산 생성"""
        return cls(
            limit=max(model.max_context - output_buffer_tokens, 0),
            model_id=model.model_id,
            tokenizer_kind=model.tokenizer_kind,
        )


@dataclass(frozen=True)
class CompressionResult:
    """압축 계획 결과"""
    patches: Tuple[FilePatch, ...]
    was_compressed: bool
    omitted_files: int = 0
    omitted_hunks: int = 0
    omitted_paths: Tuple[str, ...] = field(default_factory=tuple)
    total_tokens: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.patches

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(p.path for p in self.patches)


@dataclass(frozen=True)
class PipelineResult:
    """파이프라인 전체 실행 결과"""
    compression: CompressionResult
    decisions: Tuple[Tuple[str, FilterDecision], ...] = field(default_factory=tuple)
    failures: Tuple[FileFailure, ...] = field(default_factory=tuple)

    @property
    def nothing_to_process(self) -> bool:
        """처리할 내용이 없는 결과인지 확인 (호출자가 치명적 여부를 결정)"""
        return self.compression.is_empty

    @property
    def excluded_paths(self) -> Tuple[str, ...]:
        return tuple(path for path, decision in self.decisions if not decision.included)

    @property
    def patches(self) -> Tuple[FilePatch, ...]:
        return self.compression.patches
