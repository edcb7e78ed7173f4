"""
Attention Pipeline

Puts all components together: text in, attention maps out.

    text ──> tokenize ──> HashedEmbedding ──> X (seq_len, d)
                │                             │
                └──> init_projections ──> W_q, W_k, W_v
                                              │
                         MultiHeadAttention <─┘
                                │
                ┌───────────────┴───────────────┐
          per-head weights               averaged weights
         (H x (seq_len, seq_len))        (seq_len, seq_len)

compute_attention is a pure function of its AttentionConfig: it keeps no
state between calls and builds fresh generators and matrices every time.
Callers that recompute on every settings change (a slider, a text box)
should go through AttentionCache, which memoizes on the full configuration.
"""

from dataclasses import dataclass, fields, replace
from functools import lru_cache

import numpy as np

from utils.tokenizer import MAX_TOKENS, SAMPLE_TEXT, tokenize

from .attention import MultiHeadAttention, average_heads
from .layers import HashedEmbedding, init_projections

# Largest d accepted by AttentionCache; projection cost grows with d^2
MAX_D_MODEL = 128


@dataclass(frozen=True)
class AttentionConfig:
    """
    Everything a single attention computation depends on.

    Frozen, so it can be used directly as a cache key. Two configs that
    differ in any field, including the numeric constants below the six
    user-facing settings, are different computations.
    """
    text: str = SAMPLE_TEXT
    token_mode: str = "char"
    d_model: int = 32
    n_heads: int = 2
    causal: bool = True
    seed: int = 42

    max_tokens: int = MAX_TOKENS
    embed_scale: float = 0.5
    init_scale: float = 0.2
    mask_value: float = -1e9

    @classmethod
    def from_dict(cls, config):
        """Build from a CONFIG-style dict, ignoring keys that are not fields."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in names})


@dataclass
class AttentionResult:
    """Output of one computation. tokens is a tuple when served by AttentionCache."""
    tokens: list
    per_head_weights: list
    averaged_weights: np.ndarray
    d: int
    n_heads: int
    d_head: int


def resolve_dimensions(d_model, n_heads):
    """
    Derive the usable model width, head count and head width.

        d      = max(4, floor(d_model / 4) * 4)    multiple of 4, at least 4
        H      = max(1, min(n_heads, d / 4))       every head >= 4 wide
        d_head = floor(d / H)

    When d is not a multiple of H, H * d_head < d and the leftover columns
    are simply not used by any head.

    Returns:
        Tuple (d, H, d_head)
    """
    d = max(4, (int(d_model) // 4) * 4)
    num_heads = max(1, min(int(n_heads), d // 4))
    d_head = d // num_heads
    return d, num_heads, d_head


def compute_attention(config):
    """
    Run the whole pipeline for one configuration.

    Args:
        config: AttentionConfig

    Returns:
        AttentionResult. For an empty token sequence, per_head_weights is
        an empty list and averaged_weights has shape (0, 0).
    """
    tokens = tokenize(config.text, config.token_mode, config.max_tokens)
    d, num_heads, d_head = resolve_dimensions(config.d_model, config.n_heads)

    # Nothing to attend over
    if not tokens:
        return AttentionResult(
            tokens=[],
            per_head_weights=[],
            averaged_weights=np.zeros((0, 0), dtype=np.float64),
            d=d,
            n_heads=num_heads,
            d_head=d_head,
        )

    # =========================================================================
    # Step 1: Embed tokens
    # =========================================================================
    embedding = HashedEmbedding(d, config.seed, config.embed_scale)
    x = embedding.forward(tokens)  # (seq_len, d)

    # =========================================================================
    # Step 2: Draw projections (W_q, then W_k, then W_v from one generator)
    # =========================================================================
    W_q, W_k, W_v = init_projections(tokens, config.seed, d, config.init_scale)

    # =========================================================================
    # Step 3: Attention weights per head, then their mean
    # =========================================================================
    mha = MultiHeadAttention(
        W_q, W_k, W_v,
        num_heads=num_heads,
        causal=config.causal,
        mask_value=config.mask_value,
    )
    per_head = mha.forward(x)

    return AttentionResult(
        tokens=list(tokens),
        per_head_weights=per_head,
        averaged_weights=average_heads(per_head),
        d=d,
        n_heads=num_heads,
        d_head=d_head,
    )


def _freeze(result):
    """Mark every array of a result read-only so shared copies stay intact."""
    for w in result.per_head_weights:
        w.setflags(write=False)
    result.averaged_weights.setflags(write=False)
    result.tokens = tuple(result.tokens)
    return result


class AttentionCache:
    """
    Memoizes compute_attention on the full AttentionConfig.

    Every AttentionConfig field is part of the key, so a changed input can
    never be answered with a stale result. d_model is capped at max_d_model
    before lookup, which bounds the cost of any single request.
    Returned results are shared between callers, so their arrays are
    read-only and their token list is a tuple.

    Usage:
        cache = AttentionCache(maxsize=32)
        result = cache.get(AttentionConfig(text="hello", seed=7))
    """

    def __init__(self, maxsize=32, max_d_model=MAX_D_MODEL):
        self.max_d_model = max_d_model
        self._compute = lru_cache(maxsize=maxsize)(self._compute_frozen)

    @staticmethod
    def _compute_frozen(config):
        return _freeze(compute_attention(config))

    def get(self, config):
        if not isinstance(config, AttentionConfig):
            raise TypeError(
                f"cache key must be an AttentionConfig, got {type(config).__name__}"
            )
        if config.d_model > self.max_d_model:
            config = replace(config, d_model=self.max_d_model)
        return self._compute(config)

    def info(self):
        """functools cache statistics (hits, misses, maxsize, currsize)."""
        return self._compute.cache_info()

    def clear(self):
        self._compute.cache_clear()
