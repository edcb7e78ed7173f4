"""
Built-in Self-Checks

A fixed battery of named checks that can be run from the CLI
(python main.py --self-test) or shown next to the heatmaps. Each check
returns a plain boolean; run_self_tests collects them as
SelfTestResult(name, passed) records.

These are a quick sanity panel, not a replacement for the pytest suite.
"""

from collections import namedtuple

import numpy as np

from core.activations import softmax_rowwise
from core.attention import apply_mask, create_causal_mask
from core.layers import HashedEmbedding
from core.linalg import identity, matmul, scale, transpose
from core.pipeline import AttentionConfig, compute_attention, resolve_dimensions

SelfTestResult = namedtuple("SelfTestResult", ["name", "passed"])

EPS = 1e-6


def approx_matrix(a, b, eps=EPS):
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return a.shape == b.shape and bool(np.all(np.abs(a - b) <= eps))


def is_row_stochastic(w, eps=EPS):
    w = np.asarray(w)
    return (
        bool(np.all(np.abs(w.sum(axis=-1) - 1.0) <= eps))
        and bool(np.all(w >= 0.0))
        and bool(np.all(w <= 1.0))
    )


# =============================================================================
# CHECKS
# =============================================================================

def check_scale_halves():
    out = scale([[1, 2], [3, 4]], 0.5)
    return approx_matrix(out, [[0.5, 1.0], [1.5, 2.0]])


def check_softmax_stable_and_increasing():
    out = softmax_rowwise([[0, 0], [1, 2]])
    return approx_matrix(out[0], [0.5, 0.5]) and out[1, 1] > out[1, 0]


def check_matmul_identity():
    X = [[2, 3], [4, 5]]
    return approx_matrix(matmul(X, identity(2)), X)


def check_causal_mask_zeros_future():
    Q = np.array([[1, 0], [0, 1], [1, 1]], dtype=np.float64)
    K = Q.copy()
    scores = scale(matmul(Q, transpose(K)), 1 / np.sqrt(2))
    W = softmax_rowwise(apply_mask(scores, create_causal_mask(3)))
    return W[0, 1] < EPS and W[0, 2] < EPS and W[1, 2] < EPS


def check_single_key_row():
    result = compute_attention(AttentionConfig(text="ab", token_mode="char", causal=True))
    row = result.averaged_weights[0]
    return abs(row[0] - 1.0) <= EPS and row[1] <= EPS


def check_repeated_tokens_share_embedding():
    x = HashedEmbedding(embed_dim=16, seed=42).forward(["a", "b", "a"])
    return np.array_equal(x[0], x[2])


def check_seed_changes_weights():
    config = AttentionConfig(text="attention is all you need", causal=False, seed=1)
    other = AttentionConfig(text=config.text, causal=False, seed=2)
    return not np.array_equal(
        compute_attention(config).averaged_weights,
        compute_attention(other).averaged_weights,
    )


def check_heads_clamped():
    d, num_heads, d_head = resolve_dimensions(16, 8)
    return num_heads * d_head <= d and d_head > 0 and num_heads == 4


def check_pipeline_row_stochastic():
    result = compute_attention(AttentionConfig())
    return all(is_row_stochastic(w) for w in result.per_head_weights) and \
        is_row_stochastic(result.averaged_weights)


def check_deterministic():
    a = compute_attention(AttentionConfig())
    b = compute_attention(AttentionConfig())
    return np.array_equal(a.averaged_weights, b.averaged_weights)


SELF_TESTS = [
    ("scale halves entries", check_scale_halves),
    ("softmax_rowwise stable & increasing", check_softmax_stable_and_increasing),
    ("matmul(X, I) == X", check_matmul_identity),
    ("causal mask zeros-out future keys", check_causal_mask_zeros_future),
    ("first query attends only to itself", check_single_key_row),
    ("repeated tokens share an embedding", check_repeated_tokens_share_embedding),
    ("changing the seed changes the weights", check_seed_changes_weights),
    ("head count is clamped to the model width", check_heads_clamped),
    ("pipeline weights are row-stochastic", check_pipeline_row_stochastic),
    ("pipeline is deterministic", check_deterministic),
]


def run_self_tests():
    """
    Run every check in SELF_TESTS.

    A check that raises counts as failed; the exception type is appended
    to its name so the failure is visible in the listing.

    Returns:
        List of SelfTestResult(name, passed)
    """
    results = []
    for name, check in SELF_TESTS:
        try:
            passed = bool(check())
        except Exception as e:
            results.append(SelfTestResult(f"{name} ({type(e).__name__}: {e})", False))
            continue
        results.append(SelfTestResult(name, passed))
    return results


if __name__ == "__main__":
    for result in run_self_tests():
        print(f"  [{'PASS' if result.passed else 'FAIL'}] {result.name}")
