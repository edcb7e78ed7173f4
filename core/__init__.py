# Core attention components built from scratch
# Every number is derived from the input text and a seed, so results are reproducible

from .rng import hash_string, Mulberry32
from .activations import Softmax, softmax_rowwise
from .layers import Linear, HashedEmbedding, make_matrix, init_projections
from .attention import ScaledDotProductAttention, MultiHeadAttention, split_heads, combine_heads, create_causal_mask
from .pipeline import AttentionConfig, AttentionResult, AttentionCache, compute_attention, resolve_dimensions
