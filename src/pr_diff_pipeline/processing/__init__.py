"""
Diff Processing

This module provides the diff-processing core: file filtering, hunk
parsing, context extension, token estimation and compression planning.
"""

from .filter import FileFilter, IgnoreMatcher
from .parser import HunkParser, ParseError, DiffPipelineError
from .extender import ContextExtender
from .tokens import TokenEstimator, resolve_model
from .compression import CompressionPlanner
from .render import render_patch, render_diff

__all__ = [
    'FileFilter',
    'IgnoreMatcher',
    'HunkParser',
    'ParseError',
    'DiffPipelineError',
    'ContextExtender',
    'TokenEstimator',
    'resolve_model',
    'CompressionPlanner',
    'render_patch',
    'render_diff',
]
