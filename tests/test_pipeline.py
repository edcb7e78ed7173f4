import dataclasses

import numpy as np
import pytest

from core.layers import HashedEmbedding
from core.pipeline import AttentionCache, AttentionConfig, compute_attention, resolve_dimensions

# Averaged weights for "hello" (char mode, d_model=16, 2 heads, no mask, seed 42),
# as produced by the browser version of the playground.
HELLO_AVERAGED = np.array([
    [0.19778021362742504, 0.20036623020446565, 0.20018945513271091, 0.20018945513271091, 0.20147464590268743],
    [0.19929339746404948, 0.20148745833182058, 0.20074138307908992, 0.20074138307908992, 0.19773637804595007],
    [0.19919147655860042, 0.19976458437999506, 0.20049767317442962, 0.20049767317442962, 0.20004859271254527],
    [0.19919147655860042, 0.19976458437999506, 0.20049767317442962, 0.20049767317442962, 0.20004859271254527],
    [0.19585343118519416, 0.20110651448083022, 0.20255308023727714, 0.20255308023727714, 0.1979338938594213],
])


def assert_row_stochastic(w):
    np.testing.assert_allclose(w.sum(axis=-1), 1.0, atol=1e-6)
    assert np.all(w >= 0.0) and np.all(w <= 1.0)


def test_matches_reference_output():
    result = compute_attention(AttentionConfig(text="hello", d_model=16, n_heads=2, causal=False, seed=42))
    assert result.tokens == list("hello")
    assert (result.d, result.n_heads, result.d_head) == (16, 2, 8)
    np.testing.assert_allclose(result.averaged_weights, HELLO_AVERAGED, atol=1e-12)


def test_matches_reference_output_with_dropped_column():
    config = AttentionConfig(text="the cat sat on the mat", token_mode="word",
                             d_model=32, n_heads=3, causal=True, seed=7)
    result = compute_attention(config)
    assert (result.d, result.n_heads, result.d_head) == (32, 3, 10)
    np.testing.assert_allclose(
        result.averaged_weights[2],
        [0.33092254827292844, 0.3315680920529863, 0.33750935967408513, 0, 0, 0],
        atol=1e-12,
    )
    np.testing.assert_allclose(
        result.per_head_weights[1][3],
        [0.24106173519624396, 0.23615763678589385, 0.26148238593938933, 0.26129824207847285, 0, 0],
        atol=1e-12,
    )


def test_deterministic():
    config = AttentionConfig(text="determinism", n_heads=4, d_model=64, seed=123)
    a = compute_attention(config)
    b = compute_attention(config)
    np.testing.assert_array_equal(a.averaged_weights, b.averaged_weights)
    for wa, wb in zip(a.per_head_weights, b.per_head_weights):
        np.testing.assert_array_equal(wa, wb)


@pytest.mark.parametrize("causal", [True, False])
@pytest.mark.parametrize("d_model,n_heads", [(16, 1), (32, 2), (48, 5), (128, 8)])
def test_row_stochastic(causal, d_model, n_heads):
    result = compute_attention(AttentionConfig(d_model=d_model, n_heads=n_heads, causal=causal))
    assert len(result.per_head_weights) == result.n_heads
    for w in result.per_head_weights:
        assert_row_stochastic(w)
    assert_row_stochastic(result.averaged_weights)


def test_causal_mask_blocks_future():
    result = compute_attention(AttentionConfig(text="masking the future", causal=True))
    T = len(result.tokens)
    for w in result.per_head_weights + [result.averaged_weights]:
        for i in range(T):
            for j in range(i + 1, T):
                assert w[i, j] < 1e-6


def test_first_query_attends_only_to_itself():
    for seed in (0, 1, 42):
        result = compute_attention(AttentionConfig(text="ab", token_mode="char", causal=True, seed=seed))
        assert result.tokens == ["a", "b"]
        assert result.averaged_weights[0, 0] == pytest.approx(1.0, abs=1e-6)
        assert result.averaged_weights[0, 1] < 1e-6


def test_repeated_tokens_get_identical_embeddings():
    result = compute_attention(AttentionConfig(text="abca", causal=False))
    x = HashedEmbedding(result.d, 42).forward(result.tokens)
    np.testing.assert_array_equal(x[0], x[3])


def test_seed_changes_weights():
    base = AttentionConfig(text="attention is all you need", seed=1)
    other = dataclasses.replace(base, seed=2)
    assert not np.array_equal(
        compute_attention(base).averaged_weights,
        compute_attention(other).averaged_weights,
    )


@pytest.mark.parametrize("d_model,n_heads,expected", [
    (32, 2, (32, 2, 16)),
    (16, 8, (16, 4, 4)),
    (30, 3, (28, 3, 9)),
    (0, 0, (4, 1, 4)),
    (-20, -3, (4, 1, 4)),
    (3, 5, (4, 1, 4)),
    (128, 8, (128, 8, 16)),
])
def test_resolve_dimensions(d_model, n_heads, expected):
    d, num_heads, d_head = resolve_dimensions(d_model, n_heads)
    assert (d, num_heads, d_head) == expected
    assert num_heads * d_head <= d
    assert d_head > 0


def test_too_many_heads_are_clamped():
    result = compute_attention(AttentionConfig(d_model=16, n_heads=8))
    assert result.n_heads == 4
    assert len(result.per_head_weights) == 4


def test_empty_text_short_circuits():
    for config in (AttentionConfig(text=""), AttentionConfig(text="   ", token_mode="word")):
        result = compute_attention(config)
        assert result.tokens == []
        assert result.per_head_weights == []
        assert result.averaged_weights.shape == (0, 0)


def test_single_head_average_equals_head():
    result = compute_attention(AttentionConfig(n_heads=1))
    np.testing.assert_allclose(result.averaged_weights, result.per_head_weights[0])


def test_token_count_is_capped():
    result = compute_attention(AttentionConfig(text="x" * 90))
    assert len(result.tokens) == 40
    assert result.averaged_weights.shape == (40, 40)


def test_config_is_hashable_and_frozen():
    config = AttentionConfig()
    assert hash(config) == hash(AttentionConfig())
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.seed = 1


def test_config_from_dict_ignores_extra_keys():
    config = AttentionConfig.from_dict({"text": "hi", "seed": 3, "max_d_model": 64})
    assert config == AttentionConfig(text="hi", seed=3)


def test_cache_hits_on_equal_config():
    cache = AttentionCache(maxsize=4)
    a = cache.get(AttentionConfig(text="cache me"))
    b = cache.get(AttentionConfig(text="cache me"))
    assert a is b
    info = cache.info()
    assert (info.hits, info.misses) == (1, 1)


def test_cache_keys_on_every_field():
    cache = AttentionCache()
    base = AttentionConfig(text="same text", causal=True)
    changed = [
        dataclasses.replace(base, text="other text"),
        dataclasses.replace(base, token_mode="word"),
        dataclasses.replace(base, d_model=64),
        dataclasses.replace(base, n_heads=4),
        dataclasses.replace(base, causal=False),
        dataclasses.replace(base, seed=43),
    ]
    first = cache.get(base)
    for config in changed:
        assert cache.get(config) is not first
    assert cache.info().misses == 7


def test_cached_results_are_read_only():
    cache = AttentionCache()
    result = cache.get(AttentionConfig())
    with pytest.raises(ValueError):
        result.averaged_weights[0, 0] = 0.0
    with pytest.raises(ValueError):
        result.per_head_weights[0][0, 0] = 0.0
    assert isinstance(result.tokens, tuple)


def test_cache_rejects_plain_dicts():
    with pytest.raises(TypeError):
        AttentionCache().get({"text": "hi"})


def test_cache_clear():
    cache = AttentionCache()
    cache.get(AttentionConfig())
    cache.clear()
    assert cache.info().currsize == 0


def test_numeric_constants_are_part_of_the_key():
    cache = AttentionCache()
    base = AttentionConfig(text="hello world")
    assert len(cache.get(base).tokens) == 11

    variants = [
        dataclasses.replace(base, max_tokens=3),
        dataclasses.replace(base, embed_scale=0.25),
        dataclasses.replace(base, init_scale=0.5),
        dataclasses.replace(base, mask_value=-1e4),
    ]
    results = [cache.get(config) for config in variants]
    assert cache.info().misses == 5
    assert results[0].tokens == ("h", "e", "l")
    for result in results[1:3]:
        assert not np.array_equal(result.averaged_weights, cache.get(base).averaged_weights)


def test_result_ignores_global_config(monkeypatch):
    from config import CONFIG

    config = AttentionConfig(text="hello world")
    before = compute_attention(config)
    monkeypatch.setitem(CONFIG, "max_tokens", 3)
    monkeypatch.setitem(CONFIG, "init_scale", 0.9)
    after = compute_attention(config)
    assert after.tokens == before.tokens
    np.testing.assert_array_equal(after.averaged_weights, before.averaged_weights)


def test_cache_caps_d_model():
    cache = AttentionCache(max_d_model=64)
    result = cache.get(AttentionConfig(text="ab", d_model=1024))
    assert result.d == 64
    assert cache.get(AttentionConfig(text="ab", d_model=64)) is result
    assert AttentionCache().get(AttentionConfig(text="ab", d_model=10**6)).d == 128
