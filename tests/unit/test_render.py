"""
Unit tests for patch rendering.
"""

from pr_diff_pipeline.models.patch import EditType, FilePatch, NumberingMode
from pr_diff_pipeline.models.results import CompressionResult, TokenBudget, TokenizerKind
from pr_diff_pipeline.processing.parser import parse
from pr_diff_pipeline.processing.render import render_block, render_diff, render_hunk, render_patch, render_patches
from pr_diff_pipeline.processing.tokens import TokenEstimator


def patch_for(path, diff, edit_type=EditType.MODIFIED, old_path=None, numbering=NumberingMode.NUMBERED):
    return FilePatch(
        path=path,
        old_path=old_path or path,
        hunks=tuple(parse(diff, numbering_mode=numbering)),
        edit_type=edit_type,
    )


class TestRenderHunk:
    """Unit tests for render_hunk."""

    def test_numbered_context_and_additions(self):
        """Test new-side lines carry their line numbers."""
        hunk = parse("@@ -10,3 +10,4 @@\n line10\n line11\n+line12\n line13")[0]

        assert render_hunk(hunk) == (
            "@@ -10,3 +10,4 @@\n"
            "__new hunk__\n"
            "10  line10\n"
            "11  line11\n"
            "12 +line12\n"
            "13  line13\n"
        )

    def test_numbered_with_removals(self):
        """Test removed lines go to the old section."""
        hunk = parse("@@ -1,1 +1,1 @@\n-a\n+b")[0]

        assert render_hunk(hunk) == "@@ -1,1 +1,1 @@\n__new hunk__\n1 +b\n__old hunk__\n-a\n"

    def test_numbered_removals_only(self):
        """Test pure deletion renders only the old section."""
        hunk = parse("@@ -1,1 +0,0 @@\n-a")[0]

        assert render_hunk(hunk) == "@@ -1,1 +0,0 @@\n__old hunk__\n-a\n"

    def test_plain(self):
        """Test plain mode emits unified diff."""
        hunk = parse("@@ -1,1 +1,1 @@ fn\n-a\n+b", numbering_mode=NumberingMode.PLAIN)[0]

        assert render_hunk(hunk) == "@@ -1,1 +1,1 @@ fn\n-a\n+b\n"


class TestRenderPatch:
    """Unit tests for render_patch."""

    def test_file_header(self):
        """Test file header precedes hunks."""
        text = render_patch(patch_for("a.py", "@@ -1,1 +1,1 @@\n-a\n+b"))
        assert text.startswith("## File: 'a.py'\n\n@@ -1,1 +1,1 @@")

    def test_renamed(self):
        """Test renamed files mention the old path."""
        patch = patch_for("new.py", "@@ -1 +1 @@\n-a\n+b", EditType.RENAMED, old_path="old.py")
        assert render_patch(patch).startswith("## File: 'new.py' (renamed from 'old.py')")

    def test_deleted_without_hunks(self):
        """Test deleted file summary."""
        patch = FilePatch(path="gone.py", old_path="gone.py", edit_type=EditType.DELETED)
        assert render_patch(patch) == "## File 'gone.py' was deleted\n"

    def test_binary_and_empty(self):
        """Test placeholder bodies."""
        assert render_patch(FilePatch(path="x", old_path="x", is_binary=True)).endswith("(binary file)\n")
        assert render_patch(FilePatch(path="x", old_path="x")).endswith("(empty patch)\n")

    def test_render_patches_joins_in_order(self):
        """Test concatenation order."""
        first = patch_for("a.py", "@@ -1 +1 @@\n-a\n+b")
        second = patch_for("b.py", "@@ -1 +1 @@\n-c\n+d")

        text = render_patches([first, second])
        assert text.index("'a.py'") < text.index("'b.py'")
        assert text == render_block(first) + render_block(second)
        assert render_block(first) == render_patch(first) + "\n"


class TestRenderDiff:
    """Unit tests for render_diff."""

    def setup_method(self):
        self.estimator = TokenEstimator()
        self.kept = patch_for("kept.py", "@@ -1 +1 @@\n-a\n+b")
        self.all_patches = [
            self.kept,
            patch_for("big.py", "@@ -1 +1 @@\n-a\n+b"),
            patch_for("new.py", "@@ -0,0 +1 @@\n+b", EditType.ADDED),
            patch_for("gone.py", "@@ -1 +0,0 @@\n-a", EditType.DELETED),
        ]

    def test_uncompressed_is_plain_concatenation(self):
        """Test nothing is appended without compression."""
        result = CompressionResult(patches=(self.kept,), was_compressed=False)
        budget = TokenBudget(limit=10000, model_id="test-model")

        assert render_diff(result, budget, self.estimator) == render_patches([self.kept])

    def test_omitted_lists_appended(self):
        """Test omitted files are listed by edit type."""
        result = CompressionResult(
            patches=(self.kept,),
            was_compressed=True,
            omitted_files=3,
            omitted_hunks=3,
            omitted_paths=("big.py", "new.py", "gone.py"),
        )
        budget = TokenBudget(limit=10000, model_id="test-model")

        text = render_diff(result, budget, self.estimator, self.all_patches)

        assert text.startswith(render_patches([self.kept]))
        added = text.index("### Additional added files (not included in diff):\n- new.py")
        modified = text.index("### Additional modified files (not included in diff):\n- big.py")
        deleted = text.index("### Additional deleted files (not included in diff):\n- gone.py")
        assert added < modified < deleted

    def test_lists_skipped_without_room(self):
        """Test lists are dropped when the budget is nearly used."""
        diff = render_patches([self.kept])
        limit = self.estimator.count(diff, TokenizerKind.CHAR_RATIO) + 5
        result = CompressionResult(patches=(self.kept,), was_compressed=True, omitted_paths=("big.py",))

        text = render_diff(result, TokenBudget(limit=limit, model_id="test-model"), self.estimator)
        assert text == diff
