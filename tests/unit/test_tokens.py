"""
Unit tests for the token estimator.
"""

from unittest.mock import Mock, patch

import pytest

from pr_diff_pipeline.models.results import TokenBudget, TokenizerKind
from pr_diff_pipeline.processing.tokens import (
    TRUNCATION_MARKER,
    TokenEstimator,
    heuristic_token_count,
    normalize_model_name,
    resolve_model,
)


class TestResolveModel:
    """Unit tests for model resolution."""

    def test_known_model(self):
        """Test exact table lookup."""
        model = resolve_model("gpt-4o")

        assert model.max_context == 128000
        assert model.tokenizer_kind is TokenizerKind.O200K_BASE

    def test_legacy_tokenizer(self):
        """Test older models use cl100k."""
        assert resolve_model("gpt-4").tokenizer_kind is TokenizerKind.CL100K_BASE
        assert resolve_model("gpt-4").max_context == 8000

    def test_provider_prefix_stripped(self):
        """Test provider prefix does not change the model."""
        model = resolve_model("openai/gpt-4")

        assert model.model_id == "openai/gpt-4"
        assert model.max_context == 8000
        assert normalize_model_name("azure/gpt-4o") == "gpt-4o"

    @pytest.mark.parametrize("model_id, max_context", [
        ("anthropic/claude-3-7-sonnet-20250219", 200000),
        ("claude-3-opus-20240229", 100000),
        ("claude-sonnet-4-20250514", 200000),
        ("gemini/gemini-1.5-pro", 1048576),
        ("groq/llama3-70b", 128000),
    ])
    def test_model_families(self, model_id, max_context):
        """Test family rules for non-OpenAI models."""
        assert resolve_model(model_id).max_context == max_context

    def test_unknown_model_falls_back(self):
        """Test unknown model uses fallback window and heuristic."""
        model = resolve_model("in-house-model", fallback_max_tokens=12000)

        assert model.max_context == 12000
        assert model.tokenizer_kind is TokenizerKind.CHAR_RATIO


class TestHeuristic:
    """Unit tests for the character-ratio heuristic."""

    def test_heuristic_rounds_up(self):
        """Test ceil(len / 4)."""
        assert heuristic_token_count("") == 0
        assert heuristic_token_count("abc") == 1
        assert heuristic_token_count("abcd") == 1
        assert heuristic_token_count("abcde") == 2

    def test_unknown_model_estimate(self):
        """Test estimate for unknown model uses heuristic."""
        assert TokenEstimator().estimate("x" * 41, "in-house-model") == 11


class TestTokenEstimator:
    """Unit tests for tiktoken-backed counting."""

    @patch('pr_diff_pipeline.processing.tokens.tiktoken.get_encoding')
    def test_uses_tiktoken_encoding(self, mock_get_encoding):
        """Test counts come from the encoding and encodings are cached."""
        encoding = Mock()
        encoding.encode_ordinary.return_value = [1, 2, 3]
        mock_get_encoding.return_value = encoding

        estimator = TokenEstimator()
        assert estimator.estimate("hello world", "gpt-4o") == 3
        assert estimator.estimate("again", "gpt-4o-mini") == 3

        mock_get_encoding.assert_called_once_with("o200k_base")

    @patch('pr_diff_pipeline.processing.tokens.tiktoken.get_encoding')
    def test_encoding_load_failure_degrades(self, mock_get_encoding, caplog):
        """Test load failure falls back to heuristic without raising."""
        mock_get_encoding.side_effect = OSError("no network")

        estimator = TokenEstimator()
        assert estimator.count("x" * 8, TokenizerKind.CL100K_BASE) == 2
        assert estimator.count("x" * 8, TokenizerKind.CL100K_BASE) == 2

        assert mock_get_encoding.call_count == 1
        assert "falling back to heuristic" in caplog.text

    @patch('pr_diff_pipeline.processing.tokens.tiktoken.get_encoding')
    def test_encode_failure_degrades(self, mock_get_encoding):
        """Test encode failure falls back to heuristic."""
        encoding = Mock()
        encoding.encode_ordinary.side_effect = ValueError("bad text")
        mock_get_encoding.return_value = encoding

        assert TokenEstimator().count("x" * 12, TokenizerKind.O200K_BASE) == 3

    def test_empty_text(self):
        """Test empty text costs nothing."""
        assert TokenEstimator().count("", TokenizerKind.O200K_BASE) == 0

    def test_char_ratio_never_loads_encoding(self):
        """Test heuristic kind bypasses tiktoken."""
        with patch('pr_diff_pipeline.processing.tokens.tiktoken.get_encoding') as mock_get_encoding:
            TokenEstimator().count("text", TokenizerKind.CHAR_RATIO)
            mock_get_encoding.assert_not_called()


    def test_tokenizer_for_budget(self):
        """Test budget kind wins and model lookup is the fallback."""
        estimator = TokenEstimator()
        kinded = TokenBudget(limit=1, model_id="gpt-4o", tokenizer_kind=TokenizerKind.CHAR_RATIO)

        assert estimator.tokenizer_for_budget(kinded) is TokenizerKind.CHAR_RATIO
        assert estimator.tokenizer_for_budget(TokenBudget(limit=1, model_id="gpt-4o")) is TokenizerKind.O200K_BASE

class TestClipTokens:
    """Unit tests for clip_tokens."""

    def test_text_within_limit_unchanged(self):
        """Test fitting text is returned as is."""
        text = "a" * 40
        assert TokenEstimator().clip_tokens(text, 10, TokenizerKind.CHAR_RATIO) == text

    def test_clip_with_marker(self):
        """Test clipped text keeps a safety margin and a marker."""
        clipped = TokenEstimator().clip_tokens("a" * 400, 50, TokenizerKind.CHAR_RATIO)

        assert clipped == "a" * 180 + TRUNCATION_MARKER

    def test_clip_without_marker(self):
        """Test marker can be suppressed."""
        clipped = TokenEstimator().clip_tokens("a" * 400, 50, TokenizerKind.CHAR_RATIO, add_marker=False)
        assert len(clipped) == 180

    def test_non_positive_limit(self):
        """Test zero budget clips to nothing."""
        assert TokenEstimator().clip_tokens("abc", 0, TokenizerKind.CHAR_RATIO) == ""
