"""
Token Estimator

Maps text to an integer token cost under a model's tokenization scheme.
Models are resolved once into an immutable ModelDescriptor; unknown models
and tokenizer failures degrade to a character-ratio heuristic instead of
raising.
"""

import math
import logging
from typing import Dict, Optional

import tiktoken

from ..models.results import ModelDescriptor, TokenBudget, TokenizerKind


logger = logging.getLogger(__name__)

DEFAULT_MAX_MODEL_TOKENS = 32000
CHARS_PER_TOKEN = 4  # Average characters per token for the heuristic
CLIP_SAFETY_FACTOR = 0.9
TRUNCATION_MARKER = "\n...(truncated)"

# Exact model names: (context window, tokenizer)
_MODEL_TABLE: Dict[str, tuple] = {}


def _register(names, max_tokens: int, kind: TokenizerKind) -> None:
    for name in names:
        _MODEL_TABLE[name] = (max_tokens, kind)


_register(
    ["gpt-3.5-turbo", "gpt-3.5-turbo-0125", "gpt-3.5-turbo-1106", "gpt-3.5-turbo-16k",
     "gpt-3.5-turbo-16k-0613"],
    16000, TokenizerKind.CL100K_BASE,
)
_register(["gpt-3.5-turbo-0613"], 4000, TokenizerKind.CL100K_BASE)
_register(["gpt-4", "gpt-4-0613"], 8000, TokenizerKind.CL100K_BASE)
_register(["gpt-4-32k"], 32000, TokenizerKind.CL100K_BASE)
_register(
    ["gpt-4-1106-preview", "gpt-4-0125-preview", "gpt-4-turbo-preview", "gpt-4-turbo-2024-04-09",
     "gpt-4-turbo"],
    128000, TokenizerKind.CL100K_BASE,
)
_register(
    ["gpt-4o", "gpt-4o-2024-05-13", "gpt-4o-mini", "gpt-4o-mini-2024-07-18", "gpt-4o-2024-08-06",
     "gpt-4o-2024-11-20", "gpt-4.5-preview", "gpt-4.5-preview-2025-02-27"],
    128000, TokenizerKind.O200K_BASE,
)
_register(
    ["gpt-4.1", "gpt-4.1-2025-04-14", "gpt-4.1-mini", "gpt-4.1-mini-2025-04-14", "gpt-4.1-nano",
     "gpt-4.1-nano-2025-04-14"],
    1047576, TokenizerKind.O200K_BASE,
)
_register(
    ["gpt-5-nano", "gpt-5-mini", "gpt-5", "gpt-5-2025-08-07", "gpt-5.1", "gpt-5.1-2025-11-13",
     "gpt-5.1-chat-latest", "gpt-5.1-codex", "gpt-5.1-codex-mini"],
    200000, TokenizerKind.O200K_BASE,
)
_register(["gpt-5.2", "gpt-5.2-2025-12-11", "gpt-5.2-codex"], 400000, TokenizerKind.O200K_BASE)
_register(["gpt-5.2-chat-latest"], 128000, TokenizerKind.O200K_BASE)
_register(
    ["o1-mini", "o1-mini-2024-09-12", "o1-preview", "o1-preview-2024-09-12"],
    128000, TokenizerKind.O200K_BASE,
)
_register(["o1-2024-12-17", "o1", "o3-mini", "o3-mini-2025-01-31"], 204800, TokenizerKind.O200K_BASE)
_register(["o3", "o3-2025-04-16", "o4-mini", "o4-mini-2025-04-16"], 200000, TokenizerKind.O200K_BASE)
_register(["deepseek/deepseek-chat"], 128000, TokenizerKind.O200K_BASE)
_register(["deepseek/deepseek-reasoner"], 64000, TokenizerKind.O200K_BASE)
_register(["mistral/open-codestral-mamba"], 256000, TokenizerKind.O200K_BASE)

# Model families matched by substring or prefix, checked in order
_MODEL_FAMILIES = (
    (lambda m: "claude-3-7-sonnet" in m, 200000),
    (lambda m: "claude-3" in m or "claude-2" in m or "claude-instant" in m, 100000),
    (lambda m: "claude-" in m, 200000),
    (lambda m: m.startswith("gemini/") or "gemini-" in m, 1048576),
    (lambda m: m.startswith("groq/"), 128000),
    (lambda m: m.startswith("xai/"), 131072),
    (lambda m: m.startswith("mistral/"), 128000),
)


def normalize_model_name(model_id: str) -> str:
    """Strip provider prefixes that do not change the model."""
    model = model_id.strip()
    for prefix in ("openai/", "azure/"):
        if model.startswith(prefix):
            return model[len(prefix):]
    return model


def resolve_model(model_id: str, fallback_max_tokens: int = DEFAULT_MAX_MODEL_TOKENS) -> ModelDescriptor:
    """
    Resolve a model identifier into a ModelDescriptor.

    Args:
        model_id: Model identifier, optionally provider-prefixed
        fallback_max_tokens: Context window for unrecognized models

    Returns:
        ModelDescriptor with context window and tokenizer kind
    """
    model = normalize_model_name(model_id)

    if model in _MODEL_TABLE:
        max_tokens, kind = _MODEL_TABLE[model]
        return ModelDescriptor(model_id=model_id, max_context=max_tokens, tokenizer_kind=kind)

    for matches, max_tokens in _MODEL_FAMILIES:
        if matches(model):
            return ModelDescriptor(
                model_id=model_id, max_context=max_tokens, tokenizer_kind=TokenizerKind.O200K_BASE
            )

    logger.info(f"Unknown model {model_id!r}, using {fallback_max_tokens} tokens and heuristic estimation")
    return ModelDescriptor(
        model_id=model_id, max_context=fallback_max_tokens, tokenizer_kind=TokenizerKind.CHAR_RATIO
    )


def heuristic_token_count(text: str) -> int:
    """Estimate tokens with a fixed characters-per-token ratio."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenEstimator:
    """
    Token estimator backed by tiktoken encodings.

    Encodings are loaded lazily per tokenizer kind. A kind whose encoding
    cannot be loaded is remembered and served by the heuristic from then on.
    """

    def __init__(self, fallback_max_tokens: int = DEFAULT_MAX_MODEL_TOKENS):
        """
        Initialize token estimator.

        Args:
            fallback_max_tokens: Context window assumed for unknown models
        """
        self.fallback_max_tokens = fallback_max_tokens
        self._encoders: Dict[TokenizerKind, Optional[object]] = {}

    def tokenizer_for(self, model_id: str) -> TokenizerKind:
        """Resolve the tokenizer kind for a model."""
        return resolve_model(model_id, self.fallback_max_tokens).tokenizer_kind

    def tokenizer_for_budget(self, budget: TokenBudget) -> TokenizerKind:
        """Tokenizer kind of a budget, resolved from its model only when not already known."""
        if budget.tokenizer_kind is not None:
            return budget.tokenizer_kind
        return self.tokenizer_for(budget.model_id)

    def _encoder(self, kind: TokenizerKind):
        if kind is TokenizerKind.CHAR_RATIO:
            return None

        if kind not in self._encoders:
            try:
                self._encoders[kind] = tiktoken.get_encoding(kind.value)
            except Exception as e:
                logger.warning(f"Tokenizer {kind.value} unavailable, falling back to heuristic: {e}")
                self._encoders[kind] = None

        return self._encoders[kind]

    def count(self, text: str, kind: TokenizerKind) -> int:
        """
        Count tokens of text under a resolved tokenizer kind.

        Never raises: encoding failures fall back to the heuristic.
        """
        if not text:
            return 0

        encoder = self._encoder(kind)
        if encoder is None:
            return heuristic_token_count(text)

        try:
            return len(encoder.encode_ordinary(text))
        except Exception as e:
            logger.warning(f"Token encoding failed with {kind.value}, using heuristic: {e}")
            return heuristic_token_count(text)

    def estimate(self, text: str, model_id: str) -> int:
        """
        Estimate the token cost of text for a model.

        Args:
            text: Text to estimate
            model_id: Target model identifier

        Returns:
            Estimated token count
        """
        return self.count(text, self.tokenizer_for(model_id))

    def clip_tokens(self, text: str, max_tokens: int, kind: TokenizerKind, add_marker: bool = True) -> str:
        """
        Clip text to fit within max_tokens.

        Uses the observed characters-per-token ratio with a safety factor,
        so the result may be slightly shorter than strictly necessary.
        """
        if not text or max_tokens <= 0:
            return ""

        num_tokens = self.count(text, kind)
        if num_tokens <= max_tokens:
            return text

        chars_per_token = len(text) / num_tokens
        num_chars = int(CLIP_SAFETY_FACTOR * chars_per_token * max_tokens)
        clipped = text[:num_chars]
        return clipped + TRUNCATION_MARKER if add_marker else clipped


def estimate(text: str, model_id: str) -> int:
    """Module-level shortcut using a default TokenEstimator."""
    return TokenEstimator().estimate(text, model_id)
