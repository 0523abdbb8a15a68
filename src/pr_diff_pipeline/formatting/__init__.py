"""
Review Formatting

This module maps model line references back onto GitHub diff positions.
"""

from .github import InlineCommentLocator

__all__ = ['InlineCommentLocator']
