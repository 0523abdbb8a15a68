"""
Data Models

PR diff 파이프라인의 핵심 데이터 모델들
"""

from .patch import LineKind, NumberingMode, EditType, DiffLine, Hunk, FilePatch, FileInput
from .results import (
    FilterReason,
    FilterDecision,
    FailureReason,
    FileFailure,
    TokenizerKind,
    ModelDescriptor,
    TokenBudget,
    CompressionResult,
    PipelineResult,
)
from .review import InlineComment

__all__ = [
    "LineKind",
    "NumberingMode",
    "EditType",
    "DiffLine",
    "Hunk",
    "FilePatch",
    "FileInput",
    "FilterReason",
    "FilterDecision",
    "FailureReason",
    "FileFailure",
    "TokenizerKind",
    "ModelDescriptor",
    "TokenBudget",
    "CompressionResult",
    "PipelineResult",
    "InlineComment",
]
