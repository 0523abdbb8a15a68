"""
GitHub Integration Layer

This module provides GitHub API integration for pull request file
diffs and head-side file content.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded, split_repository
from .provider import GitHubDiffProvider

__all__ = ['GitHubClient', 'GitHubAPIError', 'RateLimitExceeded', 'GitHubDiffProvider', 'split_repository']
