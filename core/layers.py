"""
Deterministic Layers for the Attention Playground

This module implements the layers that feed attention:
- make_matrix: fill a matrix from a seeded generator
- Linear: bias-free projection y = x @ W
- HashedEmbedding: token string -> vector, seeded by the token itself
- init_projections: the query, key and value weight matrices

Nothing here is learned. Every number is drawn from a Mulberry32 generator
whose seed is derived from strings, so the same text and seed always give
the same embeddings and the same projection weights.
"""

import numpy as np

from .rng import Mulberry32, hash_string


def make_matrix(rng, rows, cols, scale_std=0.2):
    """
    Fill a (rows, cols) matrix with uniform draws in [-scale_std, scale_std).

    Entries are drawn row by row, left to right. The fill order matters:
    the generator is shared between several matrices, so drawing in a
    different order would change every matrix drawn afterwards.

    Args:
        rng: Mulberry32 generator (advanced rows * cols times)
        rows: Number of rows
        cols: Number of columns
        scale_std: Half-width of the uniform range

    Returns:
        Float64 array of shape (rows, cols)
    """
    out = np.zeros((rows, cols), dtype=np.float64)
    for i in range(rows):
        for j in range(cols):
            # Xavier-like uniform init
            out[i, j] = (rng() * 2 - 1) * scale_std
    return out


class Linear:
    """
    Bias-Free Linear Projection.

    Forward:
        y = x @ W

    Where:
        x: input of shape (seq_len, in_features)
        W: weight matrix of shape (in_features, out_features)
        y: output of shape (seq_len, out_features)

    Unlike a trainable layer, the weights are handed in from outside
    (see init_projections) so the caller controls exactly which
    generator draws produced them.
    """

    def __init__(self, W):
        """
        Args:
            W: Weight matrix of shape (in_features, out_features)
        """
        self.W = np.asarray(W, dtype=np.float64)
        self.in_features, self.out_features = self.W.shape

        # Cache of the last input, for inspection
        self.x = None

    def forward(self, x):
        """
        Project x.

        Args:
            x: Array of shape (seq_len, in_features)

        Returns:
            Array of shape (seq_len, out_features)
        """
        x = np.asarray(x, dtype=np.float64)
        if x.shape[-1] != self.in_features:
            raise ValueError(
                f"expected {self.in_features} input features, got {x.shape[-1]}"
            )
        self.x = x
        return x @ self.W


class HashedEmbedding:
    """
    Token Embedding without a Vocabulary.

    A regular embedding layer looks token IDs up in a learned table.
    Here there is no table and no vocabulary: each token string seeds its
    own generator, and the vector is simply the first embed_dim draws.

    Forward:
        seed_tk = hash_string("emb:" + token + ":" + str(seed))
        rng = Mulberry32(seed_tk)
        vector = [(rng() * 2 - 1) * scale for _ in range(embed_dim)]

    Consequences:
        - The same token string gets the same vector wherever it appears
        - Nothing depends on the token's position in the sequence
        - There is no positional encoding, so attention cannot tell
          "ab" from "ba" except through which tokens are present
    """

    def __init__(self, embed_dim, seed, scale=0.5):
        """
        Args:
            embed_dim: Length of each embedding vector
            seed: Global seed, mixed into every token's hash
            scale: Half-width of the uniform range
        """
        self.embed_dim = embed_dim
        self.seed = seed
        self.scale = scale

    def embed(self, token):
        """Embedding vector of a single token string, shape (embed_dim,)."""
        rng = Mulberry32(hash_string(f"emb:{token}:{self.seed}"))
        return np.array(
            [(rng() * 2 - 1) * self.scale for _ in range(self.embed_dim)],
            dtype=np.float64,
        )

    def forward(self, tokens):
        """
        Embed a token sequence.

        Args:
            tokens: List of token strings, length seq_len

        Returns:
            Embedding matrix, shape (seq_len, embed_dim)
        """
        out = np.zeros((len(tokens), self.embed_dim), dtype=np.float64)
        # Repeated tokens get recomputed rather than cached; the result is identical
        for i, token in enumerate(tokens):
            out[i] = self.embed(token)
        return out


def projection_seed(tokens, seed):
    """Seed of the generator shared by W_q, W_k and W_v."""
    return hash_string("|".join(tokens) + "#" + str(seed))


def init_projections(tokens, seed, dim, scale_std=0.2):
    """
    Draw the query, key and value projection matrices.

    One generator, seeded from the whole token sequence and the global seed,
    is passed through three make_matrix calls in the fixed order
    W_q, W_k, W_v. Changing that order changes all three matrices.

    Args:
        tokens: Token sequence (list of strings)
        seed: Global seed
        dim: Model dimension; each matrix is (dim, dim)
        scale_std: Half-width of the uniform range

    Returns:
        Tuple (W_q, W_k, W_v)
    """
    rng = Mulberry32(projection_seed(tokens, seed))

    W_q = make_matrix(rng, dim, dim, scale_std)
    W_k = make_matrix(rng, dim, dim, scale_std)
    W_v = make_matrix(rng, dim, dim, scale_std)

    return W_q, W_k, W_v


# =============================================================================
# TESTS
# =============================================================================

if __name__ == "__main__":
    print("Testing HashedEmbedding...")
    embed = HashedEmbedding(embed_dim=4, seed=42)
    x = embed.forward(["a", "b", "a"])
    print(f"  Embeddings shape: {x.shape}")
    print(f"  Row 0 == row 2 (same token): {np.array_equal(x[0], x[2])}")

    print("\nTesting init_projections...")
    W_q, W_k, W_v = init_projections(["a", "b"], seed=42, dim=4)
    print(f"  W_q shape: {W_q.shape}")
    print(f"  W_q range: [{W_q.min():.3f}, {W_q.max():.3f}]")

    print("\nTesting Linear...")
    proj = Linear(W_q)
    y = proj.forward(x)
    print(f"  Input shape: {x.shape}")
    print(f"  Output shape: {y.shape}")
