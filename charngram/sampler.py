"""
Deterministic sampling from a trained n-gram model.

Randomness comes from a tiny xorshift* generator instead of torch's global
RNG, so a given seed produces the same samples on every machine. The
generator's whole state is one 64-bit integer stored on the RNG object;
two RNG objects never affect each other.
"""

from charngram.tape import Tape
from charngram.tokenizer import CharTokenizer

MASK64 = 0xFFFFFFFFFFFFFFFF
MULTIPLIER = 0x2545F4914F6CDD1D


# ---------------------------------------------------------------------------
# Random number generation
# ---------------------------------------------------------------------------

class RNG:
    def __init__(self, seed: int):
        state = seed & MASK64
        if state == 0:
            # xorshift maps 0 to 0 forever
            raise ValueError("seed must be non-zero modulo 2**64")
        self.state = state

    def random_u32(self) -> int:
        """xorshift*: https://en.wikipedia.org/wiki/Xorshift#xorshift*"""
        self.state ^= self.state >> 12
        self.state ^= (self.state << 25) & MASK64
        self.state ^= self.state >> 27
        return ((self.state * MULTIPLIER) & MASK64) >> 32

    def random(self) -> float:
        """Float in [0, 1) from the top 24 bits of random_u32."""
        return (self.random_u32() >> 8) / 16777216.0


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

def sample_discrete(probs, coin: float) -> int:
    """
    Pick an index from a discrete distribution given a uniform coin in [0, 1).

    Walks the CDF and returns the first index whose cumulative probability
    reaches the coin. Zero-probability entries are never picked. Rounding
    can leave the total a hair under 1.0, in which case the last index is
    returned.
    """
    if hasattr(probs, "tolist"):
        probs = probs.tolist()
    cdf = 0.0
    for i, p in enumerate(probs):
        if p <= 0:
            continue
        cdf += p
        if coin <= cdf:
            return i
    return len(probs) - 1


def generate(model, rng: RNG, max_length: int, sentinel: int = 0,
             stop_at_sentinel: bool = True) -> list[int]:
    """
    Autoregressive generation.

    The context starts as seq_len - 1 sentinels ("start of sample"). Each
    step asks the model for the next-token distribution, samples from it
    and shifts the sample into the context.

    With stop_at_sentinel, generation ends at the first sampled sentinel,
    which is not included in the output. Otherwise exactly max_length
    tokens are produced, sentinels and all.
    """
    context = Tape(model.seq_len - 1)
    context.fill(sentinel)

    out = []
    while len(out) < max_length:
        probs = model.infer(context.tokens())
        token = sample_discrete(probs, rng.random())
        if stop_at_sentinel and token == sentinel:
            break
        out.append(token)
        context.push(token)
    return out


def sample_text(model, tok: CharTokenizer, rng: RNG, num_samples: int,
                max_length: int) -> list[str]:
    """Generate `num_samples` independent samples and decode them."""
    samples = []
    for _ in range(num_samples):
        tokens = generate(model, rng, max_length, sentinel=tok.eot_token)
        samples.append(tok.decode(tokens))
    return samples
