"""
Unit tests for GitHub Integration Layer.
"""

import time
from unittest.mock import Mock

import pytest
import requests

from pr_diff_pipeline.github.client import GitHubAPIError, GitHubClient, RateLimitExceeded, split_repository
from pr_diff_pipeline.github.provider import GitHubDiffProvider
from pr_diff_pipeline.models.patch import EditType


def make_response(status_code=200, json_data=None, text="", remaining="4999"):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    response.content = b"{}" if json_data is not None else text.encode()
    response.headers = {
        "X-RateLimit-Remaining": remaining,
        "X-RateLimit-Reset": str(int(time.time()) + 3600),
    }
    return response


class TestGitHubClient:
    """Unit tests for GitHubClient class."""

    def test_client_initialization(self):
        """Test GitHubClient initialization."""
        token = "ghp_test_token_123456789"
        client = GitHubClient(token)

        assert client.token == token
        assert client.base_url == "https://api.github.com"
        assert client.session.headers["Authorization"] == f"token {token}"
        assert client.session.headers["Accept"] == "application/vnd.github.v3+json"

    def test_client_initialization_validation(self):
        """Test empty token is rejected."""
        with pytest.raises(ValueError):
            GitHubClient("")

        with pytest.raises(ValueError):
            GitHubClient(None)

    def test_get_pull_request(self):
        """Test getting pull request information."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(json_data={"number": 123, "state": "open"})

        result = client.get_pull_request("owner", "repo", 123)

        assert result["number"] == 123
        method, url = client.session.request.call_args[0]
        assert method == "GET"
        assert url == "https://api.github.com/repos/owner/repo/pulls/123"
        assert client.rate_limit_remaining == 4999

    def test_get_pull_request_files_paginates(self):
        """Test file listing follows pages until a short page."""
        client = GitHubClient("test_token")
        client.session = Mock()
        first_page = [{"filename": f"f{i}.py"} for i in range(100)]
        second_page = [{"filename": "last.py"}]
        client.session.request.side_effect = [
            make_response(json_data=first_page),
            make_response(json_data=second_page),
        ]

        files = client.get_pull_request_files("owner", "repo", 7)

        assert len(files) == 101
        assert client.session.request.call_count == 2
        assert client.session.request.call_args[1]["params"] == {"page": 2, "per_page": 100}

    def test_get_file_content_raw(self):
        """Test raw content is requested with the raw media type."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(text="print('hi')\n")

        content = client.get_file_content("owner", "repo", "src/app.py", "abc123")

        assert content == "print('hi')\n"
        kwargs = client.session.request.call_args[1]
        assert kwargs["params"] == {"ref": "abc123"}
        assert kwargs["headers"]["Accept"] == "application/vnd.github.v3.raw"

    def test_get_file_content_not_found(self):
        """Test missing file returns None."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(404, json_data={"message": "Not Found"})

        assert client.get_file_content("owner", "repo", "missing.py", "abc123") is None

    def test_api_error(self):
        """Test non-success status raises GitHubAPIError."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(500, json_data={"message": "Server Error"})

        with pytest.raises(GitHubAPIError) as exc_info:
            client.get_pull_request("owner", "repo", 1)

        assert exc_info.value.status_code == 500
        assert "Server Error" in str(exc_info.value)

    def test_rate_limit_response(self):
        """Test exhausted rate limit raises RateLimitExceeded."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(403, json_data={}, remaining="0")

        with pytest.raises(RateLimitExceeded):
            client.get_pull_request("owner", "repo", 1)

    def test_low_rate_limit_blocks_request(self):
        """Test requests are refused while the remaining quota is low."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.return_value = make_response(json_data={}, remaining="5")

        client.get_pull_request("owner", "repo", 1)

        with pytest.raises(RateLimitExceeded):
            client.get_pull_request("owner", "repo", 1)

        assert client.session.request.call_count == 1

    def test_transport_error(self):
        """Test request exceptions are wrapped."""
        client = GitHubClient("test_token")
        client.session = Mock()
        client.session.request.side_effect = requests.ConnectionError("boom")

        with pytest.raises(GitHubAPIError):
            client.get_pull_request("owner", "repo", 1)

    def test_split_repository(self):
        """Test owner/repo parsing."""
        assert split_repository("octo/hello") == ("octo", "hello")

        for bad in ("octo", "octo/", "/hello", "a/b/c"):
            with pytest.raises(ValueError):
                split_repository(bad)


class TestGitHubDiffProvider:
    """Unit tests for GitHubDiffProvider."""

    def setup_method(self):
        self.client = Mock()
        self.client.get_pull_request.return_value = {"number": 5, "head": {"sha": "headsha"}}
        self.client.get_pull_request_files.return_value = [
            {"filename": "app.py", "status": "modified", "patch": "@@ -1 +1 @@\n-a\n+b"},
            {"filename": "new.py", "status": "renamed", "previous_filename": "old.py", "patch": "@@ -1 +1 @@\n-a\n+b"},
            {"filename": "gone.py", "status": "removed", "patch": "@@ -1 +0,0 @@\n-a"},
            {"filename": "logo.png", "status": "added"},
        ]
        self.client.get_file_content.return_value = "content\n"

    def test_maps_file_payloads(self):
        """Test payloads become FileInput values in order."""
        files = GitHubDiffProvider(self.client).get_files("owner", "repo", 5)

        assert [f.path for f in files] == ["app.py", "new.py", "gone.py", "logo.png"]
        assert files[1].old_path == "old.py"
        assert files[1].edit_type is EditType.RENAMED
        assert files[2].edit_type is EditType.DELETED
        assert files[3].patch == ""

    def test_fetches_content_only_where_useful(self):
        """Test deleted files and files without a patch are not fetched."""
        files = GitHubDiffProvider(self.client).get_files("owner", "repo", 5)

        fetched = [call[0][2] for call in self.client.get_file_content.call_args_list]
        assert fetched == ["app.py", "new.py"]
        assert files[0].new_content == "content\n"
        assert files[2].new_content is None

    def test_no_fetch_without_extension(self):
        """Test content is skipped when no context lines are requested."""
        files = GitHubDiffProvider(self.client).get_files("owner", "repo", 5, needs_content=False)

        self.client.get_file_content.assert_not_called()
        assert all(f.new_content is None for f in files)

    def test_fetch_disabled(self):
        """Test fetch can be disabled by configuration."""
        GitHubDiffProvider(self.client, fetch_content=False).get_files("owner", "repo", 5)
        self.client.get_file_content.assert_not_called()

    def test_fetch_failure_leaves_content_empty(self):
        """Test a failed content fetch does not fail the file."""
        self.client.get_file_content.side_effect = GitHubAPIError("boom", status_code=500)

        files = GitHubDiffProvider(self.client).get_files("owner", "repo", 5)

        assert files[0].new_content is None
        assert files[0].patch
