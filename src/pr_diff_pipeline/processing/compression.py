"""
Compression Planner

Decides which patch content survives when the rendered diff exceeds the
model's token budget.

Policy: files are reduced largest first (ties broken by path). A file is
trimmed from its last hunk backwards until the running total fits the
budget, keeping the longest prefix of hunks that fits; a file with no
fitting prefix is omitted and the planner moves on to the next largest.
Smaller files are therefore kept whole for as long as possible.

A pull request too large for one call can also be split into several
batches, each planned against the same budget from what earlier batches
left out.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..models.patch import FilePatch
from ..models.results import CompressionResult, TokenBudget, TokenizerKind
from .render import render_block
from .tokens import TokenEstimator


logger = logging.getLogger(__name__)


class CompressionPlanner:
    """
    Budget-aware planner over all files of a pull request.

    Deterministic: identical inputs always yield an identical result.
    """

    def __init__(self, estimator: Optional[TokenEstimator] = None):
        """
        Initialize compression planner.

        Args:
            estimator: Token estimator used to price rendered patches
        """
        self.estimator = estimator or TokenEstimator()

    def cost(self, patch: FilePatch, kind: TokenizerKind) -> int:
        """Token cost of a patch's rendered block, separator included."""
        return self.estimator.count(render_block(patch), kind)

    def plan(self, patches: Sequence[FilePatch], budget: TokenBudget) -> CompressionResult:
        """
        Plan which patches and hunks fit in the budget.

        Args:
            patches: Filtered and extended patches in presentation order
            budget: Token budget for the request

        Returns:
            CompressionResult with kept patches in their input order
        """
        result, _ = self._plan(tuple(patches), budget, self.estimator.tokenizer_for_budget(budget))
        return result

    def plan_batches(
        self, patches: Sequence[FilePatch], budget: TokenBudget, max_calls: int
    ) -> List[CompressionResult]:
        """
        Split patches into up to `max_calls` batches, each within the budget.

        Every batch is planned from the content earlier batches left out:
        omitted files are carried whole and truncated files carry their
        dropped trailing hunks. Planning stops early once everything is
        placed or when nothing more fits.

        Args:
            patches: Filtered and extended patches in presentation order
            budget: Token budget applied to each batch
            max_calls: Maximum number of batches

        Returns:
            Non-empty CompressionResults in batch order
        """
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")

        kind = self.estimator.tokenizer_for_budget(budget)
        pending = tuple(patches)
        batches: List[CompressionResult] = []

        while pending and len(batches) < max_calls:
            result, kept = self._plan(pending, budget, kind)
            if result.is_empty:
                logger.warning(f"{len(pending)} files do not fit a {budget.limit} token batch")
                break

            batches.append(result)
            pending = tuple(self._leftover(pending, kept))

        if pending:
            logger.info(f"{len(pending)} files left unplaced after {len(batches)} batches")
        else:
            logger.info(f"Planned {len(batches)} batches within {budget.limit} tokens each")
        return batches

    @staticmethod
    def _leftover(patches: Sequence[FilePatch], kept: Sequence[Optional[FilePatch]]):
        for patch, placed in zip(patches, kept):
            if placed is None:
                yield patch
            elif placed.hunk_count < patch.hunk_count:
                yield patch.with_hunks(patch.hunks[placed.hunk_count:])

    def _plan(
        self, patches: Tuple[FilePatch, ...], budget: TokenBudget, kind: TokenizerKind
    ) -> Tuple[CompressionResult, List[Optional[FilePatch]]]:
        """
        Plan one pass.

        Returns:
            Tuple of (CompressionResult, kept patch or None per input position)
        """
        costs = [self.cost(patch, kind) for patch in patches]
        total = sum(costs)

        if total <= budget.limit:
            logger.debug(f"Diff fits budget: {total} <= {budget.limit} tokens")
            return CompressionResult(patches=patches, was_compressed=False, total_tokens=total), list(patches)

        logger.info(f"Diff exceeds token budget ({total} > {budget.limit}), compressing {len(patches)} files")

        order = sorted(range(len(patches)), key=lambda i: (-costs[i], patches[i].path, i))
        kept: List[Optional[FilePatch]] = list(patches)
        running = total
        omitted_files = 0
        omitted_hunks = 0

        for index in order:
            if running <= budget.limit:
                break

            patch = patches[index]
            others = running - costs[index]
            truncated, truncated_cost = self._truncate_to_fit(patch, budget.limit - others, kind)

            if truncated is None:
                kept[index] = None
                omitted_files += 1
                omitted_hunks += patch.hunk_count
                running = others
                logger.debug(f"Omitted {patch.path} ({costs[index]} tokens, {patch.hunk_count} hunks)")
            else:
                kept[index] = truncated
                omitted_hunks += patch.hunk_count - truncated.hunk_count
                running = others + truncated_cost
                logger.debug(
                    f"Truncated {patch.path} to {truncated.hunk_count}/{patch.hunk_count} hunks "
                    f"({costs[index]} -> {truncated_cost} tokens)"
                )

        result = CompressionResult(
            patches=tuple(p for p in kept if p is not None),
            was_compressed=True,
            omitted_files=omitted_files,
            omitted_hunks=omitted_hunks,
            omitted_paths=tuple(p.path for p, k in zip(patches, kept) if k is None),
            total_tokens=running,
        )

        if result.is_empty:
            logger.warning(f"No content fits the {budget.limit} token budget")
        else:
            logger.info(
                f"Compressed diff to {running} tokens: {omitted_files} files and "
                f"{omitted_hunks} hunks omitted"
            )
        return result, kept

    def _truncate_to_fit(self, patch: FilePatch, available: int, kind: TokenizerKind):
        """
        Drop trailing hunks until the patch fits in `available` tokens.

        Returns:
            Tuple of (truncated patch or None, its cost)
        """
        keep = patch.hunk_count - 1
        while keep > 0:
            candidate = patch.truncated(keep)
            cost = self.cost(candidate, kind)
            if cost <= available:
                return candidate, cost
            keep -= 1
        return None, 0


def plan(patches: Sequence[FilePatch], budget: TokenBudget, estimator: Optional[TokenEstimator] = None) -> CompressionResult:
    """Module-level shortcut for CompressionPlanner.plan."""
    return CompressionPlanner(estimator).plan(patches, budget)
