"""
Configuration for the attention playground.

These defaults describe one small, fully deterministic attention computation.
Every value is small enough that the whole pipeline runs instantly on CPU,
which keeps the playground interactive while still showing how multi-head
attention weights form over a token sequence.
"""

CONFIG = {
    # ==========================================================================
    # INPUT
    # ==========================================================================

    # Text to tokenize and attend over
    "text": "xin chao transformer! day la demo.",

    # Tokenization granularity: "char" (one token per character)
    # or "word" (one token per whitespace-delimited word)
    "token_mode": "char",

    # Maximum number of tokens kept from the input
    # Attention cost grows with the square of this number
    "max_tokens": 40,

    # ==========================================================================
    # MODEL ARCHITECTURE
    # ==========================================================================

    # Requested model dimension (d_model in the paper)
    # Rounded down to a multiple of 4, never below 4
    "d_model": 32,

    # Requested number of attention heads
    # Clamped so that every head is at least 4 columns wide
    "n_heads": 2,

    # Largest d_model accepted at the boundary
    "max_d_model": 128,

    # ==========================================================================
    # ATTENTION
    # ==========================================================================

    # Causal mask: position i may only attend to positions j <= i
    "causal": True,

    # Score written into masked cells before softmax
    # A large finite negative number rather than -inf, so masked weights
    # come out as tiny positive values instead of exact zeros
    "mask_value": -1e9,

    # ==========================================================================
    # INITIALIZATION
    # ==========================================================================

    # Global seed: combined with token strings to seed every generator
    "seed": 42,

    # Half-width of the uniform range used for the projection matrices
    # Entries are drawn from [-init_scale, init_scale)
    "init_scale": 0.2,

    # Half-width of the uniform range used for token embeddings
    "embed_scale": 0.5,
}

TOKEN_MODES = ("char", "word")


def validate_config(config):
    """
    Check a configuration dict at the boundary and return a cleaned copy.

    The attention core clamps dimensions on its own and never fails, so this
    only rejects values that make no sense at all (wrong types, negative
    sizes, unknown token modes) and caps d_model at max_d_model.

    Args:
        config: Dict with any subset of the keys in CONFIG

    Returns:
        New dict with CONFIG defaults filled in

    Raises:
        ValueError: If a value has the wrong type or is out of range
    """
    cleaned = CONFIG.copy()
    cleaned.update(config)

    if not isinstance(cleaned["text"], str):
        raise ValueError(f"text must be a string, got {type(cleaned['text']).__name__}")

    if cleaned["token_mode"] not in TOKEN_MODES:
        raise ValueError(
            f"token_mode must be one of {TOKEN_MODES}, got {cleaned['token_mode']!r}"
        )

    for key in ("d_model", "n_heads", "seed"):
        value = cleaned[key]
        # bool is an int subclass, but True heads make no sense
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer, got {value!r}")

    for key in ("d_model", "n_heads"):
        if cleaned[key] < 0:
            raise ValueError(f"{key} must be non-negative, got {cleaned[key]}")

    cleaned["d_model"] = min(cleaned["d_model"], cleaned["max_d_model"])
    cleaned["causal"] = bool(cleaned["causal"])

    return cleaned
