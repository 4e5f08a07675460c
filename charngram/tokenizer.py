"""
Character-level tokenizer over a fixed alphabet.

Unlike a tokenizer that discovers its vocabulary from the text, this one
is told the alphabet up front. The sentinel character (a newline by
default) marks both the start and the end of a sample and always gets
token 0; the alphabet symbols follow as 1..len(alphabet).

    "\n" -> 0, "a" -> 1, "b" -> 2, ..., "z" -> 26
"""

import operator
import string

from charngram.errors import InvalidSymbol, InvalidToken


class CharTokenizer:
    def __init__(self, alphabet: str = string.ascii_lowercase, eot: str = "\n"):
        if len(eot) != 1:
            raise ValueError(f"sentinel must be a single character, got {eot!r}")
        if len(set(alphabet)) != len(alphabet):
            raise ValueError("alphabet contains duplicate characters")
        if eot in alphabet:
            raise ValueError("sentinel must not be part of the alphabet")

        self.eot = eot
        self.eot_token = 0
        self.vocab_size = len(alphabet) + 1

        # The two lookup tables, sentinel first
        chars = eot + alphabet
        self.char_to_idx = {ch: i for i, ch in enumerate(chars)}
        self.idx_to_char = {i: ch for i, ch in enumerate(chars)}

    def encode_char(self, ch: str) -> int:
        try:
            return self.char_to_idx[ch]
        except KeyError:
            raise InvalidSymbol(f"character {ch!r} is not in the alphabet") from None

    def decode_token(self, token: int) -> str:
        try:
            token = operator.index(token)
        except TypeError:
            raise InvalidToken(f"token {token!r} is not an integer") from None
        if not 0 <= token < self.vocab_size:
            raise InvalidToken(f"token {token} outside [0, {self.vocab_size})")
        return self.idx_to_char[token]

    def encode(self, text: str) -> list[int]:
        """Convert a string to a list of integers."""
        return [self.encode_char(ch) for ch in text]

    def decode(self, indices) -> str:
        """Convert a list of integers back to a string."""
        return "".join(self.decode_token(i) for i in indices)
