"""
Probability-table visualization & smoothing sweep

Run from the project root:
    python notebooks/explore.py

Trains a bigram model and plots its next-character probabilities, then
plots train/val loss against the smoothing constant for a few window
lengths. All plots saved to notebooks/ directory.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend, saves to file
import matplotlib.pyplot as plt

from charngram.tokenizer import CharTokenizer
from charngram.train import CONFIG, sweep, train_model


# ===================================================================
# PART 1: Bigram probability heatmap
# ===================================================================

def plot_bigram_probs(model, tok, save_path="notebooks/bigram_probs.png"):
    """
    Heatmap of P(next | previous) for a seq_len=2 model.

    Rows = previous character, columns = next character.
    The sentinel row is "how does a name start", the sentinel
    column is "how likely is the name to end here".
    """
    if model.seq_len != 2:
        raise ValueError(f"need a bigram model, got seq_len={model.seq_len}")

    probs = model.probabilities().numpy()
    chars = [tok.idx_to_char[i] for i in range(tok.vocab_size)]
    # Replace newlines with visible symbol
    chars = ["↵" if c == "\n" else c for c in chars]

    fig, ax = plt.subplots(figsize=(12, 11))
    im = ax.imshow(probs, cmap="Blues")
    ax.set_title(f"Bigram probabilities (smoothing={model.smoothing})", fontsize=14)
    ax.set_xlabel("Next character", fontsize=12)
    ax.set_ylabel("Previous character", fontsize=12)
    ax.set_xticks(range(len(chars)))
    ax.set_xticklabels(chars, fontsize=8)
    ax.set_yticks(range(len(chars)))
    ax.set_yticklabels(chars, fontsize=8)
    plt.colorbar(im, ax=ax, shrink=0.8)
    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    print(f"Saved bigram probabilities to {save_path}")
    plt.close()


# ===================================================================
# PART 2: Smoothing sweep
# ===================================================================

def plot_smoothing_curve(results, save_path="notebooks/smoothing_sweep.png"):
    """
    Train and val loss vs smoothing, one line per seq_len.

    results: list of (seq_len, smoothing, train_loss, val_loss) as
    returned by train.sweep().
    """
    by_len = {}
    for seq_len, smoothing, train_loss, val_loss in results:
        by_len.setdefault(seq_len, []).append((smoothing, train_loss, val_loss))

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle("Effect of Smoothing on Loss", fontsize=14)

    for seq_len, rows in sorted(by_len.items()):
        rows.sort()
        s = [r[0] for r in rows]
        ax1.plot(s, [r[1] for r in rows], marker="o", label=f"seq_len={seq_len}", linewidth=2)
        ax2.plot(s, [r[2] for r in rows], marker="o", label=f"seq_len={seq_len}", linewidth=2)

    for ax, title in ((ax1, "Training Loss"), (ax2, "Validation Loss")):
        ax.set_title(title)
        ax.set_xscale("log")
        ax.set_xlabel("Smoothing")
        ax.set_ylabel("Loss")
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    print(f"Saved smoothing sweep to {save_path}")
    plt.close()


# ===================================================================
# MAIN
# ===================================================================

if __name__ == "__main__":
    tok = CharTokenizer()

    print("=" * 60)
    print("PART 1: Bigram probabilities")
    print("=" * 60)
    bigram = train_model(CONFIG["train_path"], seq_len=2, smoothing=0.1, tok=tok)
    plot_bigram_probs(bigram, tok)

    print("\n" + "=" * 60)
    print("PART 2: Smoothing sweep")
    print("=" * 60)
    _, results = sweep(CONFIG, tok)
    plot_smoothing_curve(results)

    print("\n" + "=" * 60)
    print("DONE! Check the notebooks/ directory for:")
    print("  - bigram_probs.png")
    print("  - smoothing_sweep.png")
    print("=" * 60)
