"""
Unit tests for the context extender.
"""

import pytest

from pr_diff_pipeline.models.patch import LineKind
from pr_diff_pipeline.processing.extender import ContextExtender, extend, merge_hunks
from pr_diff_pipeline.processing.parser import parse


def numbered_file(count):
    return "\n".join(f"line{i}" for i in range(1, count + 1)) + "\n"


SCENARIO_A_DIFF = "@@ -10,3 +10,4 @@\n line10\n line11\n+line12\n line13"


class TestExtend:
    """Unit tests for extend()."""

    def test_scenario_a_window(self):
        """Test two lines before and after a mid-file hunk."""
        hunks = parse(SCENARIO_A_DIFF, "a.py", "a.py")
        extended = extend(hunks, numbered_file(30), before=2, after=2)

        assert len(extended) == 1
        hunk = extended[0]
        assert hunk.old_start == 8
        assert hunk.old_start + hunk.old_count == 15
        assert hunk.new_start == 8
        assert hunk.last_new == 15
        assert [l.text for l in hunk.lines[:2]] == ["line8", "line9"]
        assert [l.text for l in hunk.lines[-2:]] == ["line14", "line15"]
        assert all(l.kind is LineKind.CONTEXT for l in hunk.lines[:2] + hunk.lines[-2:])

    def test_old_numbers_follow_offset(self):
        """Test old numbers for trailing context keep the hunk's offset."""
        hunks = parse(SCENARIO_A_DIFF)
        hunk = extend(hunks, numbered_file(30), before=0, after=2)[0]

        trailing = hunk.lines[-2:]
        assert [(l.old_number, l.new_number) for l in trailing] == [(13, 14), (14, 15)]

    def test_no_text_is_noop(self):
        """Test missing full file leaves hunks unchanged."""
        hunks = parse(SCENARIO_A_DIFF)
        assert extend(hunks, None, before=5, after=5) == hunks

    def test_zero_extension_is_noop(self):
        """Test zero before/after leaves hunks unchanged."""
        hunks = parse(SCENARIO_A_DIFF)
        assert extend(hunks, numbered_file(30), before=0, after=0) == hunks

    def test_clamped_at_file_start(self):
        """Test extension never goes before line 1."""
        hunks = parse("@@ -1,1 +1,2 @@\n line1\n+line2")
        hunk = extend(hunks, numbered_file(10), before=5, after=0)[0]

        assert hunk.new_start == 1
        assert hunk.old_start == 1

    def test_clamped_at_file_end(self):
        """Test extension never goes past the last line."""
        hunks = parse("@@ -18,2 +18,3 @@\n line18\n+line19\n line20")
        hunk = extend(hunks, numbered_file(20), before=0, after=5)[0]

        assert hunk.last_new == 20

    def test_short_file_text(self):
        """Test file text shorter than the diff claims."""
        hunks = parse("@@ -8,1 +8,1 @@\n-old\n+line8")
        hunk = extend(hunks, numbered_file(8), before=0, after=3)[0]

        assert hunk.last_new == 8

    def test_overlapping_windows_merge(self):
        """Test hunks whose windows touch are merged without duplicates."""
        diff = "@@ -5,1 +5,1 @@\n-old5\n+line5\n@@ -9,1 +9,1 @@\n-old9\n+line9"
        hunks = parse(diff)
        merged = extend(hunks, numbered_file(20), before=2, after=2)

        assert len(merged) == 1
        hunk = merged[0]
        new_numbers = [l.new_number for l in hunk.lines if l.new_number is not None]
        old_numbers = [l.old_number for l in hunk.lines if l.old_number is not None]
        assert new_numbers == list(range(3, 12))
        assert old_numbers == list(range(3, 12))
        assert len(hunk.removed_lines) == 2
        assert len(hunk.added_lines) == 2

    def test_distant_hunks_stay_separate(self):
        """Test hunks with a gap stay apart."""
        diff = "@@ -5,1 +5,1 @@\n-old5\n+line5\n@@ -9,1 +9,1 @@\n-old9\n+line9"
        extended = extend(parse(diff), numbered_file(20), before=1, after=1)

        assert len(extended) == 2
        assert extended[0].last_new == 6
        assert extended[1].first_new == 8

    def test_changed_neighbour_not_relabelled(self):
        """Test extension stops at an adjacent hunk's changed lines."""
        diff = "@@ -5,1 +5,1 @@\n-old5\n+line5\n@@ -6,1 +6,1 @@\n-old6\n+line6"
        merged = extend(parse(diff), numbered_file(20), before=3, after=3)

        assert len(merged) == 1
        kinds = {l.new_number: l.kind for l in merged[0].lines if l.new_number is not None}
        assert kinds[5] is LineKind.ADDED
        assert kinds[6] is LineKind.ADDED

    def test_negative_counts_rejected(self):
        """Test negative extension is invalid."""
        with pytest.raises(ValueError):
            extend(parse(SCENARIO_A_DIFF), numbered_file(30), before=-1, after=0)

        with pytest.raises(ValueError):
            ContextExtender(extra_lines_before=0, extra_lines_after=-2)


    def test_form_feed_keeps_line_numbers(self):
        """Test form feeds inside file lines do not shift context numbering."""
        hunks = parse("@@ -3,1 +3,1 @@\n-old3\n+new3")
        text = "line1\x0cstill1\nline2\nnew3\nline4\n"

        hunk = extend(hunks, text, before=2, after=1)[0]

        context = [(l.new_number, l.text) for l in hunk.lines if l.kind is LineKind.CONTEXT]
        assert context == [(1, "line1\x0cstill1"), (2, "line2"), (4, "line4")]
        assert hunk.lines[0].old_number == 1


class TestContextExtender:
    """Unit tests for the ContextExtender wrapper."""

    def test_extend_uses_configured_counts(self):
        """Test extender applies its configured before/after."""
        extender = ContextExtender(extra_lines_before=1, extra_lines_after=1)
        hunk = extender.extend(parse(SCENARIO_A_DIFF), numbered_file(30))[0]

        assert hunk.new_start == 9
        assert hunk.last_new == 14

    def test_merge_hunks_passthrough(self):
        """Test merge leaves separated hunks alone."""
        hunks = parse("@@ -1,1 +1,1 @@\n-a\n+b\n@@ -10,1 +10,1 @@\n-c\n+d")
        assert merge_hunks(hunks) == hunks
