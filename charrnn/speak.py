#!/usr/bin/env python3
"""
Sample text from a trained model.

Run:
    python3 -m charrnn.speak --artifacts artifacts/run1 --checkpoint epoch41.pth --seed-text He
    python3 -m charrnn.speak --corpus tinyshakespeare.txt --checkpoint shakespeare_epoch41.pth
"""

from __future__ import annotations
import argparse
import random
import sys

import torch

from .errors import DataUnavailable
from .runtime import CharRNN


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate text from a trained character-level model.")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--artifacts", type=str, help="Folder written by charrnn.fit")
    src.add_argument("--corpus", type=str, help="Training corpus, used to rebuild the vocabulary")
    p.add_argument("--checkpoint", type=str, default=None, help="Checkpoint file (default model.pth)")
    p.add_argument("--hidden-dim", type=int, default=256, help="Used with --corpus only")
    p.add_argument("--num-layers", type=int, default=2, help="Used with --corpus only")
    p.add_argument("--seed-text", type=str, default="He")
    p.add_argument("--length", type=int, default=200)
    p.add_argument("--rng-seed", type=int, default=None)
    p.add_argument("--cpu", action="store_true")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    device = torch.device("cpu") if args.cpu else None
    try:
        if args.artifacts:
            rnn = CharRNN.from_artifacts(args.artifacts, checkpoint=args.checkpoint, device=device)
        else:
            if not args.checkpoint:
                print("--checkpoint is required with --corpus", file=sys.stderr)
                return 2
            rnn = CharRNN.from_corpus(args.corpus, args.checkpoint, device=device,
                                      hidden_dim=args.hidden_dim, num_layers=args.num_layers)
    except DataUnavailable as e:
        print(f"Cannot sample: {e}", file=sys.stderr)
        return 1
    rng = random.Random(args.rng_seed)
    try:
        text = rnn.sample(args.seed_text, args.length, rng=rng)
    except ValueError as e:
        print(f"Cannot sample: {e}", file=sys.stderr)
        return 2
    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
