"""
Self-Attention Mechanism from Scratch

This module implements the attention part of the playground:
- split_heads / combine_heads: carve the model dimension into heads and back
- create_causal_mask: which (query, key) cells are forbidden
- ScaledDotProductAttention: weights for one head
- MultiHeadAttention: project once, split, run every head, average

The formula for one head:
    weights = softmax(mask(Q @ K^T / sqrt(d_head)))

Where:
    Q = Query: "What am I looking for?"
    K = Key: "What do I contain?"
    d_head = Width of one head (for scaling)

The playground stops at the weights. The values V are projected and split
like Q and K, but nothing is ever multiplied by them: the weights are what
gets visualized.
"""

import numpy as np

from .activations import Softmax
from .layers import Linear
from .linalg import matmul, scale, transpose


def split_heads(x, num_heads):
    """
    Split the feature dimension into contiguous per-head slices.

    Head h owns columns [h * d_head, (h + 1) * d_head), where
    d_head = features // num_heads. When features is not a multiple of
    num_heads, the trailing columns belong to no head and are dropped.

    Args:
        x: Array of shape (seq_len, features)
        num_heads: Number of heads

    Returns:
        List of num_heads arrays, each (seq_len, d_head)

    Example (features=10, num_heads=3):
        d_head = 3, heads get columns 0-2, 3-5, 6-8; column 9 is dropped
    """
    x = np.asarray(x, dtype=np.float64)
    d_head = x.shape[-1] // num_heads
    return [x[:, h * d_head:(h + 1) * d_head] for h in range(num_heads)]


def combine_heads(heads):
    """
    Concatenate per-head outputs back into one wide matrix.

    Inverse of split_heads (minus any dropped columns):
    (num_heads x (seq_len, d_head)) -> (seq_len, num_heads * d_head)

    The playground never computes value-weighted head outputs, so nothing in
    the pipeline calls this. It is here for attended output vectors, which
    would be combine_heads([w_h @ V_h for each head]).
    """
    return np.concatenate([np.asarray(h, dtype=np.float64) for h in heads], axis=-1)


def create_causal_mask(seq_len):
    """
    Create a causal (autoregressive) attention mask.

    Position i may only attend to positions j <= i.

    Args:
        seq_len: Length of the sequence

    Returns:
        Boolean array of shape (seq_len, seq_len), True where attention
        is forbidden (strictly above the diagonal)

    Example for seq_len=4 (1 = masked):
        [[0, 1, 1, 1],
         [0, 0, 1, 1],
         [0, 0, 0, 1],
         [0, 0, 0, 0]]
    """
    return np.triu(np.ones((seq_len, seq_len), dtype=bool), k=1)


def apply_mask(scores, mask, mask_value=-1e9):
    """
    Overwrite masked cells of a score matrix with mask_value.

    The masked scores are replaced, not added to. With a finite sentinel
    the masked weights after softmax are tiny but not exactly zero.
    """
    return np.where(mask, mask_value, scores)


class ScaledDotProductAttention:
    """
    Attention weights for a single head.

    Step by step:
        1. scores  = Q @ K^T            (seq_len, seq_len)
        2. scores  = scores / sqrt(d_head)
        3. scores  = masked(scores)      (optional)
        4. weights = softmax(scores)     row i is a distribution over keys

    weights[i, j] = how much query position i attends to key position j.

    Why scale by sqrt(d_head)?
        Dot products of random vectors grow with their length, which would
        make softmax almost one-hot for wide heads. Dividing by sqrt(d_head)
        keeps the score spread comparable across head widths.
    """

    def __init__(self, head_dim, mask_value=-1e9):
        self.head_dim = head_dim
        self.scale = 1.0 / np.sqrt(head_dim)
        self.mask_value = mask_value
        self.softmax = Softmax()

        # Cache for inspection
        self.scores = None
        self.attn_weights = None

    def forward(self, Q, K, mask=None):
        """
        Compute attention weights.

        Args:
            Q: Queries, shape (seq_len, head_dim)
            K: Keys, shape (seq_len, head_dim)
            mask: Optional boolean mask, shape (seq_len, seq_len),
                  True where attention is forbidden

        Returns:
            Attention weights, shape (seq_len, seq_len), rows sum to 1
        """
        scores = matmul(Q, transpose(K))
        scores = scale(scores, self.scale)

        if mask is not None:
            scores = apply_mask(scores, mask, self.mask_value)

        self.scores = scores
        self.attn_weights = self.softmax.forward(scores, axis=-1)
        return self.attn_weights


class MultiHeadAttention:
    """
    Multi-Head Attention Weights.

    All heads share one set of full-width projections. The projected
    matrices are split column-wise, so each head sees its own slice:

        Q_all = X @ W_q     (seq_len, d)  -> H slices of (seq_len, d_head)
        K_all = X @ W_k     (seq_len, d)  -> H slices of (seq_len, d_head)
        V_all = X @ W_v     (seq_len, d)  -> H slices (kept, unused)

    Each head then runs ScaledDotProductAttention on its slice. The
    per-head weights are returned along with their mean, which is itself
    row-stochastic because every head's weights are.

    Note: heads are computed sequentially for clarity.
    """

    def __init__(self, W_q, W_k, W_v, num_heads, causal=True, mask_value=-1e9):
        """
        Args:
            W_q, W_k, W_v: Projection matrices, each (d, d)
            num_heads: Number of heads; d_head = d // num_heads
            causal: Mask future positions
            mask_value: Score written into masked cells
        """
        self.W_q = Linear(W_q)
        self.W_k = Linear(W_k)
        self.W_v = Linear(W_v)

        embed_dim = self.W_q.out_features
        if not 1 <= num_heads <= embed_dim:
            raise ValueError(
                f"num_heads ({num_heads}) must be between 1 and embed_dim ({embed_dim})"
            )

        self.num_heads = num_heads
        self.head_dim = embed_dim // num_heads
        self.causal = causal

        self.heads = [
            ScaledDotProductAttention(self.head_dim, mask_value)
            for _ in range(num_heads)
        ]

        # Cache for inspection
        self.Q = None
        self.K = None
        self.V = None
        self.V_heads = None

    def forward(self, x):
        """
        Compute per-head attention weights.

        Args:
            x: Embeddings, shape (seq_len, embed_dim)

        Returns:
            List of num_heads arrays, each (seq_len, seq_len)
        """
        seq_len = x.shape[0]

        # =====================================================================
        # Step 1: Project once at full width
        # =====================================================================
        self.Q = self.W_q.forward(x)
        self.K = self.W_k.forward(x)
        self.V = self.W_v.forward(x)

        # =====================================================================
        # Step 2: Split into heads
        # =====================================================================
        Q_heads = split_heads(self.Q, self.num_heads)
        K_heads = split_heads(self.K, self.num_heads)
        self.V_heads = split_heads(self.V, self.num_heads)

        # =====================================================================
        # Step 3: Run every head
        # =====================================================================
        mask = create_causal_mask(seq_len) if self.causal else None

        return [
            head.forward(Q_h, K_h, mask)
            for head, Q_h, K_h in zip(self.heads, Q_heads, K_heads)
        ]


def average_heads(head_weights):
    """Elementwise mean of a non-empty list of (seq_len, seq_len) matrices."""
    return np.mean(np.stack(head_weights), axis=0)


# =============================================================================
# TESTS
# =============================================================================

if __name__ == "__main__":
    from .layers import HashedEmbedding, init_projections

    tokens = list("hello")
    x = HashedEmbedding(embed_dim=8, seed=42).forward(tokens)
    W_q, W_k, W_v = init_projections(tokens, seed=42, dim=8)

    print("Testing MultiHeadAttention...")
    mha = MultiHeadAttention(W_q, W_k, W_v, num_heads=2)
    weights = mha.forward(x)
    print(f"  Input shape: {x.shape}")
    print(f"  Heads: {len(weights)}, each {weights[0].shape}")
    print(f"  Row sums head 0 (should be 1): {weights[0].sum(axis=-1)}")
    print(f"  Row 0 head 0 (only position 0 allowed): {weights[0][0]}")

    avg = average_heads(weights)
    print(f"  Averaged row sums: {avg.sum(axis=-1)}")
