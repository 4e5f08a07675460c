from __future__ import annotations

import io
import os
import tempfile
import unittest

import torch
from torch.utils.data import DataLoader as TorchDataLoader

from charngram.dataset import DataLoader, WindowDataset, open_split, open_windows
from charngram.errors import InvalidSymbol
from charngram.tokenizer import CharTokenizer


class DataLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tok = CharTokenizer()

    def test_windows_cross_sample_boundaries(self) -> None:
        windows = list(DataLoader("ab\ncd\n", 3, self.tok))
        self.assertEqual(windows, [[1, 2, 0], [2, 0, 3], [0, 3, 4], [3, 4, 0]])

    def test_stride_one(self) -> None:
        text = "olivia\nemma\nava\n"
        for seq_len in (1, 2, 3, 5):
            windows = list(DataLoader(text, seq_len, self.tok))
            self.assertEqual(len(windows), len(text) - seq_len + 1)
            self.assertTrue(all(len(w) == seq_len for w in windows))
            # Consecutive windows overlap by seq_len - 1 tokens
            for prev, cur in zip(windows, windows[1:]):
                self.assertEqual(prev[1:], cur[:-1])

    def test_short_source_yields_nothing(self) -> None:
        self.assertEqual(list(DataLoader("ab", 3, self.tok)), [])
        self.assertEqual(list(DataLoader("", 1, self.tok)), [])

    def test_single_pass(self) -> None:
        loader = DataLoader("abc\n", 2, self.tok)
        self.assertEqual(len(list(loader)), 3)
        self.assertEqual(list(loader), [])
        with self.assertRaises(StopIteration):
            next(loader)

    def test_chunked_sources(self) -> None:
        expected = list(DataLoader("ab\ncd\n", 2, self.tok))
        self.assertEqual(list(DataLoader(["ab\n", "cd\n"], 2, self.tok)), expected)
        self.assertEqual(list(DataLoader(io.StringIO("ab\ncd\n"), 2, self.tok)), expected)

    def test_windows_are_independent_lists(self) -> None:
        loader = DataLoader("abcd", 2, self.tok)
        first = next(loader)
        second = next(loader)
        self.assertEqual(first, [1, 2])
        self.assertEqual(second, [2, 3])

    def test_invalid_character_surfaces_lazily(self) -> None:
        loader = DataLoader("ab\nc!d\n", 2, self.tok)
        self.assertEqual(next(loader), [1, 2])
        self.assertEqual(next(loader), [2, 0])
        self.assertEqual(next(loader), [0, 3])
        with self.assertRaises(InvalidSymbol):
            next(loader)

    def test_rejects_empty_windows(self) -> None:
        with self.assertRaises(ValueError):
            DataLoader("abc", 0, self.tok)


class OpenSplitTests(unittest.TestCase):
    def test_reads_file(self) -> None:
        tok = CharTokenizer()
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "split.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write("ab\ncd\n")
            windows = list(open_split(path, 3, tok))
        self.assertEqual(windows, [[1, 2, 0], [2, 0, 3], [0, 3, 4], [3, 4, 0]])


class WindowDatasetTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tok = CharTokenizer()

    def test_yields_long_windows(self) -> None:
        windows = list(WindowDataset("ab\ncd\n", 3, self.tok))
        self.assertTrue(all(w.dtype == torch.long for w in windows))
        self.assertEqual([w.tolist() for w in windows], list(DataLoader("ab\ncd\n", 3, self.tok)))

    def test_batches_and_remainder(self) -> None:
        dataset = WindowDataset("abcdefg", 3, self.tok)
        batches = list(TorchDataLoader(dataset, batch_size=2))
        self.assertEqual([tuple(b.shape) for b in batches], [(2, 3), (2, 3), (1, 3)])
        self.assertTrue(all(b.dtype == torch.long for b in batches))
        self.assertEqual(torch.cat(batches).tolist(), [[i, i + 1, i + 2] for i in range(1, 6)])

    def test_reiterable(self) -> None:
        dataset = WindowDataset("abcd", 2, self.tok)
        self.assertEqual(len(list(dataset)), 3)
        self.assertEqual(len(list(dataset)), 3)

    def test_empty_text(self) -> None:
        self.assertEqual(list(TorchDataLoader(WindowDataset("a", 2, self.tok), batch_size=4)), [])

    def test_open_windows(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "split.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write("ab\ncd\n")
            dataset = open_windows(path, 2, self.tok)
        self.assertEqual(len(list(dataset)), 5)

    def test_rejects_empty_windows(self) -> None:
        with self.assertRaises(ValueError):
            WindowDataset("abc", 0, self.tok)


if __name__ == "__main__":
    unittest.main()
