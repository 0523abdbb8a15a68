"""
Diff Context API

Main interface that turns a pull request into the compressed diff text
placed in a review prompt, from file collection to rendered output.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .config import AppConfig, get_config
from .formatting.github import InlineCommentLocator
from .github.client import GitHubAPIError, GitHubClient, split_repository
from .github.provider import GitHubDiffProvider
from .models.patch import FileInput, NumberingMode
from .models.results import PipelineResult
from .models.review import CompressOptions, CompressResponse
from .pipeline import DiffPipeline, PipelineContext
from .processing.tokens import TokenEstimator


logger = logging.getLogger(__name__)


@dataclass
class DiffContext:
    """Rendered diff and the pipeline result it came from."""
    diff: str
    result: PipelineResult
    token_count: int

    def locator(self) -> InlineCommentLocator:
        """Comment locator over the hunks included in the diff."""
        return InlineCommentLocator(self.result.patches)

    def to_response(self) -> CompressResponse:
        """Convert to the HTTP response model."""
        compression = self.result.compression
        return CompressResponse(
            diff=self.diff,
            files_in_diff=list(compression.paths),
            omitted_paths=list(compression.omitted_paths),
            excluded_paths=list(self.result.excluded_paths),
            failed_paths=[failure.path for failure in self.result.failures],
            was_compressed=compression.was_compressed,
            omitted_files=compression.omitted_files,
            omitted_hunks=compression.omitted_hunks,
            token_count=self.token_count,
            nothing_to_process=self.result.nothing_to_process,
        )


@dataclass
class ContextResult:
    """Result of building diff context for a pull request."""
    repository: str
    pr_number: int
    status: str
    context: Optional[DiffContext]
    processing_time: float
    created_at: datetime
    metadata: Dict = field(default_factory=dict)


class DiffContextAPI:
    """
    Main diff context API interface.

    Orchestrates:
    1. Collect changed files and head content from GitHub
    2. Filter, parse and extend each file
    3. Compress the whole diff into the model's token budget
    4. Render the diff text for prompt assembly
    """

    def __init__(self, config: Optional[AppConfig] = None, estimator: Optional[TokenEstimator] = None):
        """
        Initialize diff context API.

        Args:
            config: Optional configuration object
            estimator: Optional shared token estimator
        """
        self.config = config or get_config()
        self.estimator = estimator or TokenEstimator(self.config.model.max_model_tokens)
        self.pipeline = DiffPipeline(self.estimator)
        logger.info(f"Diff context API initialized (model: {self.config.model.model})")

    def context_for(self, options: Optional[CompressOptions] = None) -> PipelineContext:
        """
        Build a pipeline context from configuration and per-request overrides.

        Args:
            options: Request options; unset fields fall back to configuration

        Returns:
            PipelineContext for one request
        """
        options = options or CompressOptions()
        context = PipelineContext.from_config(self.config, model_id=options.model)

        overrides = {}
        if options.extra_lines_before is not None:
            overrides['extra_lines_before'] = options.extra_lines_before
        if options.extra_lines_after is not None:
            overrides['extra_lines_after'] = options.extra_lines_after
        if options.add_line_numbers is not None:
            overrides['numbering'] = NumberingMode.NUMBERED if options.add_line_numbers else NumberingMode.PLAIN
        if overrides:
            context = replace(context, **overrides)

        if options.max_tokens is not None:
            context = context.with_budget(min(options.max_tokens, context.budget.limit))
        return context

    def compress(self, files: Sequence[FileInput], context: Optional[PipelineContext] = None) -> DiffContext:
        """
        Run the pipeline over already-collected files.

        Args:
            files: File inputs in presentation order
            context: Request context (defaults from configuration)

        Returns:
            DiffContext with rendered diff text
        """
        context = context or self.context_for()
        result, diff = self.pipeline.run_and_render(files, context)
        token_count = self.estimator.count(diff, context.model.tokenizer_kind)

        if result.nothing_to_process:
            logger.warning("Nothing to process: every file was excluded, failed or omitted")

        return DiffContext(diff=diff, result=result, token_count=token_count)

    def build_context(
        self,
        repository: str,
        pr_number: int,
        github_token: Optional[str] = None,
        options: Optional[CompressOptions] = None,
    ) -> ContextResult:
        """
        Build compressed diff context for a GitHub pull request.

        Args:
            repository: Repository in 'owner/repo' form
            pr_number: Pull request number
            github_token: Token overriding the configured one
            options: Request options

        Returns:
            ContextResult; status is 'failed' when GitHub could not be read
        """
        start_time = datetime.now()
        logger.info(f"Building diff context for {repository}#{pr_number}")

        try:
            owner, repo = split_repository(repository)
            context = self.context_for(options)
            provider = GitHubDiffProvider(
                self._client(github_token),
                fetch_content=self.config.github.fetch_file_content,
            )
            needs_content = context.extra_lines_before > 0 or context.extra_lines_after > 0
            files = provider.get_files(owner, repo, pr_number, needs_content=needs_content)
            diff_context = self.compress(files, context)
        except (GitHubAPIError, ValueError) as e:
            logger.error(f"Diff context failed for {repository}#{pr_number}: {e}")
            return ContextResult(
                repository=repository,
                pr_number=pr_number,
                status="failed",
                context=None,
                processing_time=(datetime.now() - start_time).total_seconds(),
                created_at=start_time,
                metadata={"error": str(e)},
            )

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"Diff context completed for {repository}#{pr_number} ({processing_time:.2f}s)")

        return ContextResult(
            repository=repository,
            pr_number=pr_number,
            status="completed",
            context=diff_context,
            processing_time=processing_time,
            created_at=start_time,
            metadata=self._create_metadata(files, diff_context),
        )

    def _client(self, github_token: Optional[str]) -> GitHubClient:
        return GitHubClient(
            github_token or self.config.github.token,
            base_url=self.config.github.api_base_url,
            timeout=self.config.github.timeout_seconds,
        )

    def _create_metadata(self, files: List[FileInput], diff_context: DiffContext) -> Dict:
        compression = diff_context.result.compression
        return {
            "total_files": len(files),
            "files_in_diff": len(compression.patches),
            "excluded_files": len(diff_context.result.excluded_paths),
            "failed_files": len(diff_context.result.failures),
            "omitted_files": compression.omitted_files,
            "omitted_hunks": compression.omitted_hunks,
            "additions": sum(p.additions for p in compression.patches),
            "deletions": sum(p.deletions for p in compression.patches),
            "was_compressed": compression.was_compressed,
            "token_count": diff_context.token_count,
        }
