"""
GitHub Diff Provider

Maps GitHub pull request file payloads into pipeline file inputs,
fetching head-side file content where context extension needs it.
"""

import logging
from typing import Dict, List

from ..models.patch import EditType, FileInput
from .client import GitHubAPIError, GitHubClient


logger = logging.getLogger(__name__)


class GitHubDiffProvider:
    """
    Diff-and-content provider backed by the GitHub REST API.

    File order follows the order GitHub reports them in.
    """

    def __init__(self, client: GitHubClient, fetch_content: bool = True):
        """
        Initialize diff provider.

        Args:
            client: Authenticated GitHub client
            fetch_content: Whether to fetch full head-side content for context extension
        """
        self.client = client
        self.fetch_content = fetch_content

    def get_files(self, owner: str, repo: str, pr_number: int, needs_content: bool = True) -> List[FileInput]:
        """
        Collect file inputs for a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number
            needs_content: False when no extra context lines are requested

        Returns:
            List of FileInput in provider order
        """
        pr_data = self.client.get_pull_request(owner, repo, pr_number)
        head_sha = pr_data.get('head', {}).get('sha')
        files_data = self.client.get_pull_request_files(owner, repo, pr_number)

        fetch = self.fetch_content and needs_content and bool(head_sha)
        inputs = [self._to_file_input(owner, repo, head_sha, file_data, fetch) for file_data in files_data]

        logger.info(f"Collected {len(inputs)} files for {owner}/{repo}#{pr_number}")
        return inputs

    def _to_file_input(self, owner: str, repo: str, head_sha: str, file_data: Dict, fetch: bool) -> FileInput:
        """
        Convert one GitHub file payload.

        Args:
            file_data: Entry from the pull request files endpoint
            fetch: Whether head content may be fetched

        Returns:
            FileInput for the pipeline
        """
        path = file_data['filename']
        edit_type = EditType.from_status(file_data.get('status'))
        patch = file_data.get('patch') or ''

        new_content = None
        if fetch and patch and edit_type != EditType.DELETED:
            new_content = self._fetch_content(owner, repo, path, head_sha)

        return FileInput(
            path=path,
            patch=patch,
            old_path=file_data.get('previous_filename'),
            new_content=new_content,
            edit_type=edit_type,
        )

    def _fetch_content(self, owner: str, repo: str, path: str, ref: str):
        try:
            return self.client.get_file_content(owner, repo, path, ref)
        except GitHubAPIError as e:
            # Without content the file is still processed, just not extended
            logger.warning(f"Could not fetch content for {path}: {e}")
            return None
