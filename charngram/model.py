"""
Count-based n-gram language model.

The whole model is one flat table of counters, one counter per possible
window of `seq_len` tokens. With vocab_size V and seq_len n there are V**n
windows, and a window is turned into its counter's offset by reading its
tokens as the digits of a base-V number:

    window  = [t0, t1, ..., t(n-1)]
    offset  = t0 * V**(n-1) + t1 * V**(n-2) + ... + t(n-1)

The last token is the least significant digit. So for a fixed context
(the first n-1 tokens) the V possible targets sit next to each other in
the table. That contiguous slice is the "row" we normalize into a
probability distribution at inference time.

Training only ever increments counters. Inference never writes.
"""

import operator

import torch

from charngram.errors import (
    CapacityOverflow,
    InvalidContextLength,
    InvalidToken,
    InvalidWindowLength,
)


# Largest index torch can address in a 1D tensor
INDEX_MAX = torch.iinfo(torch.int64).max


# ---------------------------------------------------------------------------
# Mixed-radix addressing
# ---------------------------------------------------------------------------

def ravel_index(index, dim: int) -> int:
    """
    Convert a tuple of digits in [0, dim) into a single flat offset.

    index[0] is the most significant digit, index[-1] the least. This is
    numpy's ravel_multi_index for a (dim, dim, ..., dim) shape.
    """
    offset = 0
    for ix in index:
        try:
            ix = operator.index(ix)
        except TypeError:
            raise InvalidToken(f"token {ix!r} is not an integer") from None
        if not 0 <= ix < dim:
            raise InvalidToken(f"token {ix} outside [0, {dim})")
        offset = offset * dim + ix
    return offset


def unravel_index(offset: int, k: int, dim: int) -> list[int]:
    """Inverse of ravel_index: the k digits addressed by `offset`."""
    if not 0 <= offset < dim ** k:
        raise IndexError(f"offset {offset} outside [0, {dim ** k})")
    digits = [0] * k
    for i in range(k - 1, -1, -1):
        offset, digits[i] = divmod(offset, dim)
    return digits


# ---------------------------------------------------------------------------
# The model
# ---------------------------------------------------------------------------

class NgramModel:
    """
    N-gram model with add-k (Laplace) smoothing.

    Args:
        vocab_size: number of distinct tokens V
        seq_len: window length n (context of n-1 tokens + 1 target)
        smoothing: constant added to every count before normalizing
    """

    def __init__(self, vocab_size: int, seq_len: int, smoothing: float = 0.0):
        if vocab_size < 1:
            raise ValueError(f"vocab_size must be >= 1, got {vocab_size}")
        if seq_len < 1:
            raise ValueError(f"seq_len must be >= 1, got {seq_len}")
        if smoothing < 0:
            raise ValueError(f"smoothing must be >= 0, got {smoothing}")

        # Check the table size with exact integers before allocating anything
        num_counts = vocab_size ** seq_len
        if num_counts > INDEX_MAX:
            raise CapacityOverflow(
                f"vocab_size={vocab_size}, seq_len={seq_len} needs {num_counts} "
                f"counters, more than the {INDEX_MAX} the table can index"
            )

        self.vocab_size = vocab_size
        self.seq_len = seq_len
        self.smoothing = float(smoothing)
        self.num_counts = num_counts

        # The parameters of this model: V**n counters, all zero
        self.counts = torch.zeros(num_counts, dtype=torch.int64)

        # Returned for contexts we have never seen
        self.uniform = torch.full((vocab_size,), 1.0 / vocab_size, dtype=torch.float32)

        # Place values of each digit, used to ravel whole batches at once
        self.place_values = torch.tensor(
            [vocab_size ** (seq_len - 1 - i) for i in range(seq_len)],
            dtype=torch.int64,
        )

    # ---- table access ----

    def _slice(self, offset: int, width: int = 1) -> torch.Tensor:
        # Every read and write of the table goes through here
        if offset < 0 or offset + width > self.num_counts:
            raise IndexError(
                f"counter range [{offset}, {offset + width}) outside table of {self.num_counts}"
            )
        return self.counts[offset : offset + width]

    def _row_offset(self, context) -> int:
        context = list(context)
        if len(context) != self.seq_len - 1:
            raise InvalidContextLength(
                f"context must have {self.seq_len - 1} tokens, got {len(context)}"
            )
        # The row starts where the target digit is 0
        return ravel_index(context + [0], self.vocab_size)

    def count(self, window) -> int:
        """How many times `window` has been seen in training."""
        window = list(window)
        if len(window) != self.seq_len:
            raise InvalidWindowLength(
                f"window must have {self.seq_len} tokens, got {len(window)}"
            )
        return int(self._slice(ravel_index(window, self.vocab_size))[0])

    def row_counts(self, context) -> torch.Tensor:
        """Raw counts of every possible next token after `context`."""
        return self._slice(self._row_offset(context), self.vocab_size).clone()

    def total_count(self) -> int:
        return int(self.counts.sum())

    # ---- training ----

    def train(self, window) -> None:
        """Count one window of exactly seq_len tokens."""
        window = list(window)
        if len(window) != self.seq_len:
            raise InvalidWindowLength(
                f"window must have {self.seq_len} tokens, got {len(window)}"
            )
        offset = ravel_index(window, self.vocab_size)
        self._slice(offset).add_(1)

    def train_batch(self, windows) -> None:
        """
        Count a (B, seq_len) batch of windows in one shot.

        Same result as calling train() on every row, just vectorized:
        ravel each row with the place values, then scatter-add ones.
        """
        windows = torch.as_tensor(windows)
        if windows.dim() != 2 or windows.size(1) != self.seq_len:
            raise InvalidWindowLength(
                f"expected a (B, {self.seq_len}) batch, got shape {tuple(windows.shape)}"
            )
        if windows.numel() == 0:
            return
        if windows.is_floating_point() or windows.is_complex():
            raise InvalidToken(f"batch has non-integer dtype {windows.dtype}")
        windows = windows.to(torch.int64)
        if windows.min() < 0 or windows.max() >= self.vocab_size:
            raise InvalidToken(f"batch has tokens outside [0, {self.vocab_size})")

        offsets = (windows * self.place_values).sum(dim=1)
        self.counts.index_add_(0, offsets, torch.ones_like(offsets))

    def merge(self, other: "NgramModel") -> "NgramModel":
        """Add another model's counts into this one (e.g. from a separate data shard)."""
        if (other.vocab_size, other.seq_len) != (self.vocab_size, self.seq_len):
            raise ValueError(
                f"cannot merge a (V={other.vocab_size}, n={other.seq_len}) model "
                f"into a (V={self.vocab_size}, n={self.seq_len}) model"
            )
        self.counts += other.counts
        return self

    # ---- inference ----

    def infer(self, context) -> torch.Tensor:
        """
        Probability distribution over the next token given seq_len - 1 tokens.

        A context that never appeared in training gets the uniform
        distribution outright. That is a separate branch, not the smoothing
        formula evaluated at zero counts.
        """
        row = self._slice(self._row_offset(context), self.vocab_size)
        raw_sum = int(row.sum())
        if raw_sum == 0:
            return self.uniform.clone()

        # Normalize in float64, hand back float32
        smoothed = row.to(torch.float64) + self.smoothing
        probs = smoothed / (raw_sum + self.vocab_size * self.smoothing)
        return probs.to(torch.float32)

    __call__ = infer

    def probabilities(self) -> torch.Tensor:
        """
        The full table of next-token distributions, shape (V,) * seq_len.

        probs[c0, ..., c(n-2), :] == infer([c0, ..., c(n-2)]) for every context.
        """
        V = self.vocab_size
        rows = self.counts.view(-1, V).to(torch.float64)
        sums = rows.sum(dim=1, keepdim=True)
        probs = (rows + self.smoothing) / (sums + V * self.smoothing)
        probs = torch.where(sums == 0, torch.full_like(probs, 1.0 / V), probs)
        return probs.to(torch.float32).view((V,) * self.seq_len)

    # ---- checkpointing ----

    def state_dict(self) -> dict:
        return {
            "vocab_size": self.vocab_size,
            "seq_len": self.seq_len,
            "smoothing": self.smoothing,
            "counts": self.counts.clone(),
        }

    @classmethod
    def from_state_dict(cls, state: dict) -> "NgramModel":
        model = cls(state["vocab_size"], state["seq_len"], state["smoothing"])
        counts = torch.as_tensor(state["counts"], dtype=torch.int64)
        if counts.shape != model.counts.shape:
            raise ValueError(
                f"checkpoint has {counts.numel()} counters, expected {model.num_counts}"
            )
        if counts.numel() and counts.min() < 0:
            raise ValueError("checkpoint has negative counts")
        model.counts.copy_(counts)
        return model

    def __repr__(self):
        return (
            f"NgramModel(vocab_size={self.vocab_size}, seq_len={self.seq_len}, "
            f"smoothing={self.smoothing})"
        )


# ---------------------------------------------------------------------------
# Sanity check
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    # Tiny alphabet: sentinel=0, a=1, b=2
    model = NgramModel(vocab_size=3, seq_len=2, smoothing=0.0)
    for window in ([1, 2], [1, 2], [2, 0]):
        model.train(window)

    print(f"Total counts: {model.total_count()} (expected 3)")
    print(f"P(. | a) = {model.infer([1]).tolist()}  (expected [0, 0, 1])")
    print(f"P(. | b) = {model.infer([2]).tolist()}  (expected [1, 0, 0])")
    print(f"P(. | <eot>) = {model.infer([0]).tolist()}  (expected uniform)")
