"""
Softmax from Scratch

Attention turns raw query-key scores into weights with a row-wise softmax.
Each row of the result is a probability distribution over key positions:
all entries are in [0, 1] and every row sums to 1.

Key Concepts:
- Softmax is shift invariant: softmax(x) = softmax(x - c) for any constant c
- Subtracting the row max keeps every exponent <= 0, so exp() cannot overflow
- Masked cells hold a huge negative score and come out as (almost) zero
"""

import numpy as np


class Softmax:
    """
    Row-wise softmax activation.

    Forward:
        softmax(x)_i = exp(x_i - max(x)) / sum_j(exp(x_j - max(x)))

    Converts each row of a score matrix into a probability distribution.

    Numerical Stability:
        Computing exp(x) directly can overflow for large x values.
        We subtract the row maximum first, so the largest exponent is 0
        and every exp() lands in (0, 1].

        After the max subtraction the row sum is at least 1 (the max entry
        contributes exp(0) = 1), so a zero denominator should never happen.
        We still replace a zero sum with 1 so a degenerate row can never
        produce NaN or inf.
    """

    def __init__(self):
        self.output = None  # Last result, kept for inspection

    def forward(self, x, axis=-1):
        """
        Compute softmax along the specified axis.

        Args:
            x: Score array, typically (seq_len, seq_len)
            axis: Axis along which to normalize (default: last axis, i.e. rows)

        Returns:
            Array of the same shape, each slice along axis summing to 1
        """
        x = np.asarray(x, dtype=np.float64)

        # Rows with no columns have nothing to normalize
        if x.shape[axis] == 0:
            self.output = x.copy()
            return self.output

        # Step 1: Subtract max for numerical stability
        x_max = np.max(x, axis=axis, keepdims=True)
        x_shifted = x - x_max  # Now the max value is 0, all others are negative

        # Step 2: Compute exponentials
        exp_x = np.exp(x_shifted)

        # Step 3: Normalize, guarding against an all-zero row
        sum_exp = np.sum(exp_x, axis=axis, keepdims=True)
        sum_exp = np.where(sum_exp == 0, 1.0, sum_exp)
        self.output = exp_x / sum_exp

        return self.output


def softmax_rowwise(x):
    """Functional form of Softmax().forward(x) over the last axis."""
    return Softmax().forward(x, axis=-1)


# =============================================================================
# SIMPLE TESTS
# =============================================================================

if __name__ == "__main__":
    print("Testing Softmax...")
    softmax = Softmax()

    x = np.array([[1, 2, 3], [1, 1, 1], [0, -1e9, -1e9]], dtype=np.float64)
    y = softmax.forward(x)
    print(f"  Input:\n{x}")
    print(f"  Output:\n{y}")
    print(f"  Sum per row: {np.sum(y, axis=1)}")  # Should be [1, 1, 1]
