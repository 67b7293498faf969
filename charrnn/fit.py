#!/usr/bin/env python3
"""
Entry point to train a character-level language model via CharRNNTrainer.

Run:
    python3 -m charrnn.fit --corpus tinyshakespeare.txt --epochs 50 --outdir artifacts/run1
"""

from __future__ import annotations
import argparse
import sys

from .errors import DataUnavailable
from .trainer import CharRNNTrainer, TrainerConfig


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Train a character-level LSTM language model on a text corpus.")
    p.add_argument("--corpus", type=str, default="tinyshakespeare.txt")
    p.add_argument("--encoding", type=str, default="utf-8")
    p.add_argument("--epochs", type=int, default=50)
    p.add_argument("--minibatch-size", type=int, default=100)
    p.add_argument("--max-minibatches", type=int, default=None, help="Cap on minibatches over the whole run")
    p.add_argument("--stride", type=int, default=1, help="Offset between consecutive windows")
    p.add_argument("--lr", type=float, default=1e-3, help="Learning rate per character")
    p.add_argument("--momentum", type=float, default=None, help="Default exp(-minibatch_size / time constant)")
    p.add_argument("--momentum-time-constant", type=float, default=1100.0)
    p.add_argument("--clip", type=float, default=5.0)
    p.add_argument("--hidden-dim", type=int, default=256)
    p.add_argument("--num-layers", type=int, default=2)
    p.add_argument("--cell-dim", type=int, default=None)
    p.add_argument("--self-stabilize", action="store_true")
    p.add_argument("--sample-frequency", type=int, default=1000)
    p.add_argument("--sample-length", type=int, default=50)
    p.add_argument("--report-every", type=int, default=100)
    p.add_argument("--seed", type=int, default=None, help="Training seed (None=non-deterministic)")
    p.add_argument("--outdir", type=str, default=None)
    p.add_argument("--cpu", action="store_true")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        cfg = TrainerConfig(
            corpus=args.corpus,
            encoding=args.encoding,
            epochs=args.epochs,
            minibatch_size=args.minibatch_size,
            max_minibatches=args.max_minibatches,
            stride=args.stride,
            lr=args.lr,
            momentum=args.momentum,
            momentum_time_constant=args.momentum_time_constant,
            clip=args.clip,
            hidden_dim=args.hidden_dim,
            num_layers=args.num_layers,
            cell_dim=args.cell_dim,
            self_stabilize=args.self_stabilize,
            sample_frequency=args.sample_frequency,
            sample_length=args.sample_length,
            report_every=args.report_every,
            seed=args.seed,
            outdir=args.outdir,
            use_cpu=args.cpu,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    # Training runs during initialization
    try:
        CharRNNTrainer(cfg=cfg, autostart=True)
    except DataUnavailable as e:
        print(f"Cannot train: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
