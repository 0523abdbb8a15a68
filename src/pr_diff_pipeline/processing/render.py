"""
Patch Renderer

Serializes FilePatch values into the text submitted to the model. The
Compression Planner prices each file as its block (rendered patch plus the
separator that follows it), and the diff is the plain concatenation of
those blocks.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.patch import EditType, FilePatch, Hunk, LineKind, NumberingMode
from ..models.results import CompressionResult, TokenBudget
from .tokens import TokenEstimator


logger = logging.getLogger(__name__)

# Space kept free before the remaining-files lists are worth appending
LIST_DELTA_TOKENS = 10

# Blank line closing every file block
PATCH_SEPARATOR = "\n"


def render_hunk(hunk: Hunk) -> str:
    """
    Render one hunk.

    Numbered hunks split into a ``__new hunk__`` section whose lines carry
    new-file line numbers and an ``__old hunk__`` section with the removed
    side; plain hunks are emitted as unified diff.
    """
    out = [hunk.header]

    if hunk.numbering is NumberingMode.PLAIN:
        out.extend(f"{line.kind.marker}{line.text}" for line in hunk.lines)
        return "\n".join(out) + "\n"

    has_added = any(l.kind is LineKind.ADDED for l in hunk.lines)
    has_removed = any(l.kind is LineKind.REMOVED for l in hunk.lines)

    if has_added or not has_removed:
        out.append("__new hunk__")
        out.extend(
            f"{line.new_number} {line.kind.marker}{line.text}"
            for line in hunk.lines
            if line.kind is not LineKind.REMOVED
        )

    if has_removed:
        out.append("__old hunk__")
        out.extend(
            f"{line.kind.marker}{line.text}"
            for line in hunk.lines
            if line.kind is not LineKind.ADDED
        )

    return "\n".join(out) + "\n"


def render_patch(patch: FilePatch) -> str:
    """Render a file patch with its file header."""
    path = patch.path.strip()

    if patch.edit_type is EditType.DELETED and not patch.hunks:
        return f"## File '{path}' was deleted\n"

    header = f"## File: '{path}'"
    if patch.edit_type is EditType.RENAMED and patch.old_path and patch.old_path != patch.path:
        header += f" (renamed from '{patch.old_path.strip()}')"

    if patch.is_binary:
        return f"{header}\n\n(binary file)\n"

    if not patch.hunks:
        return f"{header}\n\n(empty patch)\n"

    return f"{header}\n\n" + "\n".join(render_hunk(hunk) for hunk in patch.hunks)


def render_block(patch: FilePatch) -> str:
    """Render a patch followed by its separator, the unit the planner prices."""
    return render_patch(patch) + PATCH_SEPARATOR


def render_patches(patches: Sequence[FilePatch]) -> str:
    """Concatenate rendered file blocks in order."""
    return "".join(render_block(patch) for patch in patches)


def render_diff(
    result: CompressionResult,
    budget: TokenBudget,
    estimator: TokenEstimator,
    all_patches: Optional[Sequence[FilePatch]] = None,
) -> str:
    """
    Render the final diff text for prompt assembly.

    When the diff was compressed and budget remains, lists of files left
    out of the diff are appended, grouped by edit type and clipped to the
    remaining budget.

    Args:
        result: CompressionResult from the planner
        budget: Token budget the result was planned against
        estimator: Token estimator for clipping
        all_patches: Patches handed to the planner (for edit types of omitted files)

    Returns:
        Diff text
    """
    diff = render_patches(result.patches)
    if not result.was_compressed or not result.omitted_paths:
        return diff

    kind = estimator.tokenizer_for_budget(budget)
    remaining = budget.limit - estimator.count(diff, kind)
    if remaining <= LIST_DELTA_TOKENS:
        return diff

    edit_types: Dict[str, EditType] = {p.path: p.edit_type for p in (all_patches or ())}
    groups: Dict[str, List[str]] = {"added": [], "modified": [], "deleted": []}
    for path in result.omitted_paths:
        edit_type = edit_types.get(path, EditType.MODIFIED)
        if edit_type is EditType.ADDED:
            groups["added"].append(path)
        elif edit_type is EditType.DELETED:
            groups["deleted"].append(path)
        else:
            groups["modified"].append(path)

    for label, paths in groups.items():
        if not paths or remaining < LIST_DELTA_TOKENS:
            continue
        listing = f"### Additional {label} files (not included in diff):\n" + "".join(
            f"- {path}\n" for path in paths
        ) + PATCH_SEPARATOR
        clipped = estimator.clip_tokens(listing, remaining, kind)
        clipped_tokens = estimator.count(clipped, kind)
        if not clipped or clipped_tokens > remaining:
            break
        diff += clipped
        remaining -= clipped_tokens
        if clipped != listing:
            break

    logger.debug(f"Appended omitted file lists for {len(result.omitted_paths)} files")
    return diff
