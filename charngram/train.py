"""
Training driver for the n-gram model.

"Training" an n-gram model is just counting, so there is no optimizer and
no learning rate. What we do have to choose is the window length and the
smoothing constant. We pick them by grid search on the validation split:

1. For each (seq_len, smoothing): count the train split, score train + val
2. Keep the configuration with the lowest val loss
3. Re-train it, print a few samples, score the test split once
4. Save the counts as a checkpoint
"""

import itertools
import os
import time

import torch
from torch.utils.data import DataLoader

from charngram.dataset import open_split, open_windows
from charngram.evaluate import evaluate
from charngram.model import NgramModel
from charngram.sampler import RNG, sample_text
from charngram.tokenizer import CharTokenizer


# ---------------------------------------------------------------------------
# Hyperparameters: all in one place
# ---------------------------------------------------------------------------
CONFIG = {
    # Data (one sample per line, lowercase a-z only)
    "train_path": "data/train.txt",
    "val_path": "data/val.txt",
    "test_path": "data/test.txt",

    # Grid search
    "seq_lens": [3, 4, 5],
    "smoothings": [0.03, 0.1, 0.3, 1.0],

    # Counting
    "batch_size": 4096,

    # Sampling
    "seed": 1337,
    "num_samples": 20,
    "max_generation_length": 64,

    # Output
    "checkpoint_path": "checkpoints/ngram.pt",
}


def train_model(path: str, seq_len: int, smoothing: float, tok: CharTokenizer,
                batch_size: int = 4096) -> NgramModel:
    """Count every window of the split at `path` into a fresh model."""
    model = NgramModel(tok.vocab_size, seq_len, smoothing)
    loader = DataLoader(open_windows(path, seq_len, tok), batch_size=batch_size)
    for batch in loader:
        model.train_batch(batch)
    return model


def eval_split(model: NgramModel, path: str, tok: CharTokenizer):
    return evaluate(model, open_split(path, model.seq_len, tok))


def sweep(cfg: dict, tok: CharTokenizer):
    """
    Grid search over seq_len x smoothing, scored by val loss.

    Returns:
        best: {"seq_len": ..., "smoothing": ...}
        results: list of (seq_len, smoothing, train_loss, val_loss)
    """
    best_loss = float("inf")
    best = None
    results = []

    for seq_len, smoothing in itertools.product(cfg["seq_lens"], cfg["smoothings"]):
        model = train_model(cfg["train_path"], seq_len, smoothing, tok, cfg["batch_size"])
        train_loss = eval_split(model, cfg["train_path"], tok).mean_nll
        val_loss = eval_split(model, cfg["val_path"], tok).mean_nll
        results.append((seq_len, smoothing, train_loss, val_loss))
        print(
            f"seq_len {seq_len} | "
            f"smoothing {smoothing:.2f} | "
            f"train loss: {train_loss:.4f} | "
            f"val loss: {val_loss:.4f}"
        )

        if best is None or val_loss < best_loss:
            best_loss = val_loss
            best = {"seq_len": seq_len, "smoothing": smoothing}

    return best, results


def save_checkpoint(model: NgramModel, cfg: dict, path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    torch.save({
        "model_state": model.state_dict(),
        "config": cfg,
    }, path)


def train(cfg: dict = CONFIG) -> NgramModel:
    tok = CharTokenizer()

    # ---- Hyperparameter search ----
    print("Searching hyperparameters...")
    print("-" * 60)
    t0 = time.time()
    best, _ = sweep(cfg, tok)
    print("-" * 60)
    print(f"Best hyperparameters: {best} ({time.time() - t0:.1f}s)")

    # ---- Final model ----
    model = train_model(cfg["train_path"], best["seq_len"], best["smoothing"], tok, cfg["batch_size"])
    print(f"Counted {model.total_count():,} windows into {model.num_counts:,} counters")

    # ---- Samples ----
    print("\n" + "=" * 60)
    print("SAMPLES")
    print("=" * 60)
    rng = RNG(cfg["seed"])
    for name in sample_text(model, tok, rng, cfg["num_samples"], cfg["max_generation_length"]):
        print(name)

    # ---- Test split, evaluated once at the end ----
    result = eval_split(model, cfg["test_path"], tok)
    print("=" * 60)
    print(f"test loss: {result.mean_nll:.4f} | test perplexity: {result.perplexity:.4f}")

    save_checkpoint(model, {**cfg, **best}, cfg["checkpoint_path"])
    print(f"Saved checkpoint: {cfg['checkpoint_path']}")
    return model


if __name__ == "__main__":
    train()
