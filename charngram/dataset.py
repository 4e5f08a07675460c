"""
Windowed data iteration for n-gram counting.

The key idea: every position in the character stream gives us a window.
Characters are encoded one at a time and pushed through a Tape of length
seq_len. Once the tape has filled up, every push produces a window, so
consecutive windows overlap by seq_len - 1 tokens (stride 1).

If seq_len=3 and the text is "ab\\ncd\\n", the windows are

  [a, b, \\n]   [b, \\n, c]   [\\n, c, d]   [c, d, \\n]

Sample boundaries are not special: the newline is just the sentinel token,
and windows run straight across it. That is how the model learns which
letters start a name (context ending in the sentinel) and which ones end
it (target == sentinel).
"""

from typing import Iterable, Iterator

import torch
from torch.utils.data import IterableDataset

from charngram.tape import Tape
from charngram.tokenizer import CharTokenizer


class DataLoader:
    """
    Lazy, single-pass iterator of seq_len-token windows.

    Args:
        source: anything that iterates over strings: a str, a list of
            lines, an open text file. Each item may hold many characters.
        seq_len: number of tokens per window
        tokenizer: maps characters to tokens

    The loader is exhausted after one pass. To go over the data again,
    build a new one from a fresh source.
    """

    def __init__(self, source: Iterable[str], seq_len: int, tokenizer: CharTokenizer):
        if seq_len < 1:
            raise ValueError(f"seq_len must be >= 1, got {seq_len}")
        self.seq_len = seq_len
        self.tokenizer = tokenizer
        self.tape = Tape(seq_len)
        self._chars = (ch for chunk in source for ch in chunk)

    def __iter__(self):
        return self

    def __next__(self) -> list[int]:
        for ch in self._chars:
            token = self.tokenizer.encode_char(ch)
            if self.tape.push(token):
                return self.tape.tokens()
        raise StopIteration


def read_split(path: str) -> str:
    """One data split, one sample per line."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def open_split(path: str, seq_len: int, tokenizer: CharTokenizer) -> DataLoader:
    """Read one data split and wrap it in a DataLoader."""
    return DataLoader(read_split(path), seq_len, tokenizer)


class WindowDataset(IterableDataset):
    """
    The windows of a text as a torch dataset, for batched counting.

    Each iteration starts a fresh DataLoader over the text and yields its
    windows as 1D LongTensors, so torch's DataLoader can stack them into
    (batch_size, seq_len) batches.
    """

    def __init__(self, text: str, seq_len: int, tokenizer: CharTokenizer):
        if seq_len < 1:
            raise ValueError(f"seq_len must be >= 1, got {seq_len}")
        self.text = text
        self.seq_len = seq_len
        self.tokenizer = tokenizer

    def __iter__(self) -> Iterator[torch.Tensor]:
        for window in DataLoader(self.text, self.seq_len, self.tokenizer):
            yield torch.tensor(window, dtype=torch.long)


def open_windows(path: str, seq_len: int, tokenizer: CharTokenizer) -> WindowDataset:
    """Read one data split into a WindowDataset."""
    return WindowDataset(read_split(path), seq_len, tokenizer)


if __name__ == "__main__":
    tok = CharTokenizer()
    loader = DataLoader("emma\nolivia\n", seq_len=3, tokenizer=tok)

    for i, window in enumerate(loader):
        print(f"{i:2d} | {window} | {tok.decode(window)!r}")
