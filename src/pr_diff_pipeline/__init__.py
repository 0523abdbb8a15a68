"""
PR Diff Pipeline

Pull Request diff를 모델 토큰 예산에 맞게 필터링, 확장, 압축하는 파이프라인
"""

__version__ = "1.0.0"

from .pipeline import DiffPipeline, PipelineContext
from .api import DiffContextAPI

__all__ = ["DiffPipeline", "PipelineContext", "DiffContextAPI"]
