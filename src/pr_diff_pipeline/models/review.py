"""
Review Data Models

인라인 코멘트 위치 및 API 요청/응답 데이터 모델들
"""

from dataclasses import dataclass
from typing import List, Optional
from pydantic import BaseModel, validator


@dataclass(frozen=True)
class InlineComment:
    """GitHub PR 인라인 코멘트 위치"""
    path: str
    line: int
    side: str  # 'RIGHT' for new code, 'LEFT' for old code
    start_line: Optional[int] = None

    def __post_init__(self):
        """데이터 검증"""
        valid_sides = {'RIGHT', 'LEFT'}
        if self.side not in valid_sides:
            raise ValueError(f"Invalid side: {self.side}")

        if self.line <= 0:
            raise ValueError("Line number must be positive")

        if self.start_line is not None and not 0 < self.start_line <= self.line:
            raise ValueError("start_line must be positive and not after line")

    def to_github_payload(self, body: str) -> dict:
        """GitHub review comment API 형식으로 변환"""
        payload = {'path': self.path, 'line': self.line, 'side': self.side, 'body': body}
        if self.start_line is not None and self.start_line != self.line:
            payload['start_line'] = self.start_line
            payload['start_side'] = self.side
        return payload


# Pydantic models for API validation
class FileInputRequest(BaseModel):
    """API 요청용 FileInput 모델"""
    path: str
    patch: str = ''
    old_path: Optional[str] = None
    new_content: Optional[str] = None
    status: str = 'modified'

    @validator('path')
    def validate_path(cls, v):
        if not v.strip():
            raise ValueError('File path cannot be empty')
        return v.strip()

    @validator('status')
    def validate_status(cls, v):
        if v not in {'added', 'modified', 'removed', 'deleted', 'renamed', 'copied', 'changed'}:
            raise ValueError('Invalid file status')
        return v


class CompressOptions(BaseModel):
    """API 요청용 파이프라인 옵션"""
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    extra_lines_before: Optional[int] = None
    extra_lines_after: Optional[int] = None
    add_line_numbers: Optional[bool] = None

    @validator('max_tokens')
    def validate_max_tokens(cls, v):
        if v is not None and v <= 0:
            raise ValueError('max_tokens must be positive')
        return v

    @validator('extra_lines_before', 'extra_lines_after')
    def validate_extra_lines(cls, v):
        if v is not None and v < 0:
            raise ValueError('Extra lines must be non-negative')
        return v


class CompressRequest(BaseModel):
    """API 요청용 diff 압축 요청 모델"""
    files: List[FileInputRequest]
    options: CompressOptions = CompressOptions()


class CompressResponse(BaseModel):
    """API 응답용 diff 압축 결과 모델"""
    diff: str
    files_in_diff: List[str]
    omitted_paths: List[str]
    excluded_paths: List[str]
    failed_paths: List[str]
    was_compressed: bool
    omitted_files: int
    omitted_hunks: int
    token_count: int
    nothing_to_process: bool
