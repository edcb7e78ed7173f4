"""
Tokenization Utilities

This module splits raw text into the token sequence that attention runs
over. There is no vocabulary and no token IDs: tokens stay strings, and the
embedding layer hashes each string directly.

Two granularities are supported:
- "char": one token per character (Unicode code point)
- "word": one token per run of non-whitespace characters

For a production system, you would use a trained subword tokenizer
(like BPE or WordPiece). Here the point is to see attention between
recognizable units, so characters and words are enough.
"""

# =============================================================================
# SAMPLE TEXT
# =============================================================================
# Short enough that the character-level heatmap stays readable.

SAMPLE_TEXT = "xin chao transformer! day la demo."

MAX_TOKENS = 40


def tokenize(text, mode="char", max_tokens=MAX_TOKENS):
    """
    Split text into tokens.

    Args:
        text: String to tokenize
        mode: "char" or "word"
        max_tokens: Keep only the first max_tokens tokens

    Returns:
        List of token strings (possibly empty)

    Raises:
        ValueError: If mode is not "char" or "word"

    Example:
        tokenize("to be or", "word")  -> ["to", "be", "or"]
        tokenize("to be", "char")     -> ["t", "o", " ", "b", "e"]
    """
    if mode == "word":
        # str.split() with no argument splits on whitespace runs
        # and never produces empty fragments
        tokens = text.split()
    elif mode == "char":
        tokens = list(text)
    else:
        raise ValueError(f"unknown token mode {mode!r}, expected 'char' or 'word'")

    return tokens[:max_tokens]


# =============================================================================
# TESTS
# =============================================================================

if __name__ == "__main__":
    print("=" * 60)
    print("Testing Tokenizer")
    print("=" * 60)

    for mode in ("char", "word"):
        tokens = tokenize(SAMPLE_TEXT, mode)
        print(f"\n{mode} mode ({len(tokens)} tokens):")
        print(f"  {tokens}")
