"""
Errors raised by the n-gram pipeline.

Everything derives from NgramError, and each class also derives from the
closest builtin so callers can catch either one.
"""


class NgramError(Exception):
    """Base class for all n-gram pipeline errors."""


# ---------------------------------------------------------------------------
# Tokenizer contract violations
# ---------------------------------------------------------------------------

class InvalidSymbol(NgramError, ValueError):
    """A character outside the tokenizer's alphabet was encoded."""


class InvalidToken(NgramError, ValueError):
    """A token id outside [0, vocab_size) was decoded or indexed."""


# ---------------------------------------------------------------------------
# API misuse
# ---------------------------------------------------------------------------

class InvalidCapacity(NgramError, ValueError):
    """A tape was created with a negative capacity."""


class InvalidWindowLength(NgramError, ValueError):
    """A training window does not have exactly seq_len tokens."""


class InvalidContextLength(NgramError, ValueError):
    """An inference context does not have exactly seq_len - 1 tokens."""


# ---------------------------------------------------------------------------
# Configuration / data
# ---------------------------------------------------------------------------

class CapacityOverflow(NgramError, OverflowError):
    """vocab_size ** seq_len does not fit the count table's index type."""


class EmptySplit(NgramError, ValueError):
    """A data split produced zero windows."""
