"""
Diff Pipeline

Runs the per-file chain (filter, parse, extend) and the budget-aware
compression pass over all files of one pull request.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .config import AppConfig
from .models.patch import FileInput, FilePatch, NumberingMode
from .models.results import (
    CompressionResult,
    FailureReason,
    FileFailure,
    FilterDecision,
    FilterReason,
    ModelDescriptor,
    PipelineResult,
    TokenBudget,
)
from .processing.compression import CompressionPlanner
from .processing.extender import extend
from .processing.filter import FileFilter, IgnoreMatcher
from .processing.parser import HunkParser, ParseError
from .processing.render import render_diff, render_patches
from .processing.tokens import TokenEstimator, resolve_model


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineContext:
    """
    Explicit request context passed through every pipeline call.

    Holds everything the pipeline would otherwise read from ambient
    settings, so concurrent invocations never share mutable state.
    """
    extra_lines_before: int
    extra_lines_after: int
    matcher: IgnoreMatcher
    numbering: NumberingMode
    model: ModelDescriptor
    budget: TokenBudget
    max_calls: int = 1

    @classmethod
    def from_config(cls, config: AppConfig, model_id: Optional[str] = None) -> "PipelineContext":
        """
        Build a context from application configuration.

        Args:
            config: Loaded application configuration
            model_id: Override for the configured model

        Returns:
            PipelineContext with compiled ignore patterns and resolved model
        """
        model = resolve_model(model_id or config.model.model, config.model.max_model_tokens)
        matcher = IgnoreMatcher.compile(
            globs=config.ignore.glob,
            regexes=config.ignore.regex,
            allowed_extensions=config.ignore.allowed_extensions,
        )
        return cls(
            extra_lines_before=config.patch.patch_extra_lines_before,
            extra_lines_after=config.patch.patch_extra_lines_after,
            matcher=matcher,
            numbering=NumberingMode.NUMBERED if config.patch.add_line_numbers else NumberingMode.PLAIN,
            model=model,
            budget=TokenBudget.for_model(model, config.model.output_buffer_tokens),
            max_calls=config.patch.max_number_of_calls,
        )

    def with_budget(self, limit: int) -> "PipelineContext":
        """Return a copy with a different token limit."""
        return replace(
            self,
            budget=TokenBudget(limit=limit, model_id=self.model.model_id, tokenizer_kind=self.model.tokenizer_kind),
        )


class DiffPipeline:
    """
    Diff-processing pipeline.

    Per-file failures become values in the result; nothing in here raises
    for a single bad file.
    """

    def __init__(self, estimator: Optional[TokenEstimator] = None):
        """
        Initialize diff pipeline.

        Args:
            estimator: Token estimator shared by planning and rendering
        """
        self.estimator = estimator or TokenEstimator()
        self.parser = HunkParser()
        self.planner = CompressionPlanner(self.estimator)

    def prepare(self, files: Sequence[FileInput], context: PipelineContext):
        """
        Filter, parse and extend files.

        Returns:
            Tuple of (patches, decisions, failures)
        """
        included, decisions = FileFilter(context.matcher).filter_files(files)
        # Decision index of each included file, in order; paths may repeat
        positions = [i for i, (_, decision) in enumerate(decisions) if decision.included]

        patches: List[FilePatch] = []
        failures: List[FileFailure] = []
        for position, file in zip(positions, included):
            try:
                patch = self.parser.parse_file(file, context.numbering)
            except ParseError as e:
                logger.warning(f"Dropping {file.path}: {e}")
                failures.append(FileFailure(path=file.path, reason=FailureReason.PARSE_ERROR, detail=str(e)))
                continue

            if patch.is_binary:
                logger.debug(f"Excluding {file.path}: binary diff")
                decisions[position] = (file.path, FilterDecision.exclude(FilterReason.BINARY, "diff"))
                continue

            if patch.hunks:
                patch = patch.with_hunks(
                    extend(patch.hunks, file.new_content, context.extra_lines_before, context.extra_lines_after)
                )
            patches.append(patch)

        return patches, decisions, failures

    def run(self, files: Sequence[FileInput], context: PipelineContext) -> PipelineResult:
        """
        Run the full pipeline for one pull request.

        Args:
            files: Provider file records in presentation order
            context: Request context

        Returns:
            PipelineResult; `nothing_to_process` is set when no content survives
        """
        result, _ = self._execute(files, context)
        return result

    def run_and_render(self, files: Sequence[FileInput], context: PipelineContext):
        """
        Run the pipeline and render the diff text for prompt assembly.

        Returns:
            Tuple of (PipelineResult, diff text)
        """
        result, patches = self._execute(files, context)
        diff = render_diff(result.compression, context.budget, self.estimator, patches)
        return result, diff

    def run_batches(self, files: Sequence[FileInput], context: PipelineContext, max_calls: Optional[int] = None):
        """
        Run the pipeline and split the diff into budget-sized batches.

        Args:
            files: Provider file records in presentation order
            context: Request context
            max_calls: Batch limit, defaults to the context's `max_calls`

        Returns:
            List of (CompressionResult, diff text) per batch; empty when nothing fits
        """
        patches, _, _ = self.prepare(files, context)
        if not patches:
            logger.info("No files left to process after filtering and parsing")
            return []

        batches = self.planner.plan_batches(patches, context.budget, max_calls or context.max_calls)
        return [(batch, render_patches(batch.patches)) for batch in batches]

    def _execute(self, files: Sequence[FileInput], context: PipelineContext):
        logger.info(f"Processing {len(files)} files for model {context.model.model_id}")

        patches, decisions, failures = self.prepare(files, context)

        if not patches:
            logger.info("No files left to process after filtering and parsing")
            compression = CompressionResult(patches=(), was_compressed=False)
        else:
            compression = self.planner.plan(patches, context.budget)

        result = PipelineResult(
            compression=compression,
            decisions=tuple(decisions),
            failures=tuple(failures),
        )
        return result, patches
