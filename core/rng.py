"""
Deterministic Hashing and Random Numbers

Everything random in the playground comes from this module:
- hash_string: turns a string into a 32-bit seed
- Mulberry32: turns a 32-bit seed into a stream of floats in [0, 1)

We avoid np.random on purpose. The same (text, seed) pair must give the same
attention maps on every machine and in every language that implements the
same two functions, so both are written out with explicit 32-bit arithmetic.

The hash is 32-bit FNV-1a:
    h = 2166136261
    for each code unit c:  h = (h ^ c) * 16777619   (mod 2^32)

The generator is Mulberry32, a tiny state-advance PRNG:
    state += 0x6D2B79F5
    t = state
    t = (t ^ (t >> 15)) * (t | 1)
    t ^= t + (t ^ (t >> 7)) * (t | 61)
    out = (t ^ (t >> 14)) / 2^32
with every multiplication truncated to 32 bits.
"""

MASK32 = 0xFFFFFFFF

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

MULBERRY_INCREMENT = 0x6D2B79F5


def imul32(a, b):
    """32-bit truncating multiply (unsigned view)."""
    return (a * b) & MASK32


def utf16_code_units(s):
    """
    Yield the UTF-16 code units of a string.

    Characters outside the Basic Multilingual Plane (emoji, for instance)
    become a surrogate pair, which is how browsers index strings.
    """
    data = s.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def hash_string(s):
    """
    Order-sensitive 32-bit FNV-1a digest of a string.

    Args:
        s: Any string

    Returns:
        Integer in [0, 2^32)
    """
    h = FNV_OFFSET_BASIS
    for c in utf16_code_units(s):
        h ^= c
        h = imul32(h, FNV_PRIME)
    return h


class Mulberry32:
    """
    Seeded pseudo-random generator producing floats in [0, 1).

    Each call advances a 32-bit hidden state, so the generator is not a pure
    function, but two generators built from the same seed always produce the
    same sequence. Instances never share state.

    Usage:
        rng = Mulberry32(hash_string("hello"))
        x = rng()          # same as rng.next()
    """

    def __init__(self, seed):
        # Any integer is accepted; only its low 32 bits matter
        self.state = seed & MASK32

    def next_uint32(self):
        """Advance the state and return the raw 32-bit output."""
        self.state = (self.state + MULBERRY_INCREMENT) & MASK32

        t = self.state
        t = imul32(t ^ (t >> 15), t | 1)
        t ^= (t + imul32(t ^ (t >> 7), t | 61)) & MASK32

        return (t ^ (t >> 14)) & MASK32

    def next(self):
        """Return the next float in [0, 1)."""
        return self.next_uint32() / 4294967296

    def __call__(self):
        return self.next()


# =============================================================================
# TESTS
# =============================================================================

if __name__ == "__main__":
    print("Testing hash_string...")
    for s in ["", "a", "emb:a:42", "a|b#42"]:
        print(f"  hash_string({s!r}) = {hash_string(s)}")

    print("\nTesting Mulberry32...")
    rng_a = Mulberry32(0)
    rng_b = Mulberry32(0)
    draws_a = [rng_a() for _ in range(5)]
    draws_b = [rng_b() for _ in range(5)]
    print(f"  Draws: {draws_a}")
    print(f"  Same seed, same draws: {draws_a == draws_b}")
