"""
Text generation with a trained n-gram model.

Two modes:
1. Print a batch of samples for a given seed
2. Interactive loop to change seed, count and length on the fly
"""

import torch

from charngram.model import NgramModel
from charngram.sampler import RNG, generate, sample_text
from charngram.tokenizer import CharTokenizer


def load_model(checkpoint_path: str):
    """Load a trained model from a checkpoint."""
    ckpt = torch.load(checkpoint_path, map_location="cpu", weights_only=False)
    model = NgramModel.from_state_dict(ckpt["model_state"])
    tok = CharTokenizer()
    if tok.vocab_size != model.vocab_size:
        raise ValueError(
            f"checkpoint vocab_size {model.vocab_size} does not match tokenizer ({tok.vocab_size})"
        )

    print(f"Loaded {model} ({model.total_count():,} windows counted)")
    return model, tok, ckpt["config"]


def generate_names(model, tok, n=20, seed=1337, max_length=64):
    """Generate `n` samples, one per sentinel-terminated run."""
    return sample_text(model, tok, RNG(seed), n, max_length)


def generate_stream(model, tok, seed=1337, length=200):
    """One long run that keeps going through sentinels."""
    tokens = generate(model, RNG(seed), length, sentinel=tok.eot_token, stop_at_sentinel=False)
    return tok.decode(tokens)


def interactive(model, tok, cfg):
    """Interactive prompt loop."""
    print("=" * 60)
    print("INTERACTIVE MODE")
    print("Press Enter to sample. Type 'quit' to exit.")
    print("Commands: /seed 42  /n 10  /len 32")
    print("=" * 60)

    seed = cfg.get("seed", 1337)
    n = cfg.get("num_samples", 10)
    length = cfg.get("max_generation_length", 64)

    rng = RNG(seed)
    while True:
        prompt = input("\n> ").strip()
        if prompt.lower() == "quit":
            break
        if prompt.startswith("/"):
            command, *args = prompt.split()
            try:
                if len(args) != 1:
                    raise ValueError("expected one integer argument")
                value = int(args[0])
                if command == "/seed":
                    rng = RNG(value)
                    seed = value
                    print(f"Seed set to {seed}")
                elif command == "/n":
                    if value < 0:
                        raise ValueError("count must be >= 0")
                    n = value
                    print(f"Samples per round set to {n}")
                elif command == "/len":
                    if value < 0:
                        raise ValueError("length must be >= 0")
                    length = value
                    print(f"Max length set to {length}")
                else:
                    print(f"Unknown command {command}")
            except ValueError as e:
                print(f"Could not apply {prompt!r}: {e}")
            continue

        # Keep drawing from the same stream so each round is new
        for name in sample_text(model, tok, rng, n, length):
            print(name)


if __name__ == "__main__":
    model, tok, cfg = load_model("checkpoints/ngram.pt")

    print("\n--- Samples ---")
    for name in generate_names(model, tok, seed=cfg.get("seed", 1337)):
        print(name)

    print("\n--- Continuous stream ---")
    print(generate_stream(model, tok))

    interactive(model, tok, cfg)
