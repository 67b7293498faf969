from __future__ import annotations

import json
import math
import pickle
import random
import sys
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple, List, Dict, Any

import torch
import torch.nn as nn

from .characters import Vocabulary
from .datasets import window_indices, num_positions
from .errors import DataUnavailable, FrameworkComputeFailure, PersistFailure
from .model import Architecture, count_parameters
from .sampling import sample


@dataclass
class TrainerConfig:
    corpus: str = "tinyshakespeare.txt"
    encoding: str = "utf-8"
    epochs: int = 50
    minibatch_size: int = 100            # characters per window
    max_minibatches: int | None = None   # cap over the whole run (None = no cap)
    stride: int = 1                      # window j starts at j * stride
    lr: float = 1e-3                     # per character: the loss is summed over the window
    momentum: float | None = None        # None = exp(-minibatch_size / momentum_time_constant)
    momentum_time_constant: float = 1100.0
    clip: float = 5.0                    # element-wise gradient clipping
    hidden_dim: int = 256
    num_layers: int = 2
    cell_dim: int | None = None          # None = hidden_dim
    self_stabilize: bool = False
    sample_frequency: int = 1000         # global minibatches between samples (0 = never)
    sample_length: int = 50
    report_every: int = 100
    seed: int | None = None              # training RNG (None = non-deterministic)
    outdir: str | None = None            # default artifacts/YYYYMMDD-HHMMSS
    use_cpu: bool = False                # force CPU

    def __post_init__(self):
        for name in ("epochs", "minibatch_size", "stride"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_minibatches is not None and self.max_minibatches < self.epochs:
            raise ValueError(
                f"max_minibatches ({self.max_minibatches}) must allow at least one minibatch "
                f"per epoch ({self.epochs} epochs)"
            )
        if self.momentum_time_constant <= 0:
            raise ValueError("momentum_time_constant must be positive")

    @property
    def effective_momentum(self) -> float:
        if self.momentum is not None:
            return self.momentum
        return math.exp(-self.minibatch_size / self.momentum_time_constant)


class CharRNNTrainer:
    """
    Trains a character-level LSTM language model on a text corpus.

    Instantiating this class runs training if autostart=True.

    Artifacts:
      - epoch{N}.pth   (state dict after each epoch)
      - model.pth      (final state dict)
      - vocab.json
      - config.json    (full TrainerConfig)
      - history.json   (per-epoch metrics)
      - README.txt
    """
    def __init__(self, cfg: TrainerConfig = TrainerConfig(), autostart: bool = True):
        self.cfg = cfg
        self.device = torch.device("cpu" if cfg.use_cpu or not torch.cuda.is_available() else "cuda")

        if cfg.seed is not None:
            torch.manual_seed(cfg.seed)
            random.seed(cfg.seed)
            if self.device.type == "cuda":
                torch.cuda.manual_seed_all(cfg.seed)
        self.rng = random.Random(cfg.seed)

        # Data (raises DataUnavailable before anything is written)
        self.vocab, self.text = Vocabulary.from_file(cfg.corpus, encoding=cfg.encoding)
        self.encoded = self.vocab.index(self.text)
        positions = num_positions(len(self.text), cfg.stride)
        if positions == 0:
            raise DataUnavailable(cfg.corpus, "corpus needs at least two characters")
        per_epoch = max(1, len(self.text) // cfg.minibatch_size)
        if cfg.max_minibatches is not None:
            per_epoch = min(per_epoch, cfg.max_minibatches // cfg.epochs)
        self.minibatches_per_epoch = min(per_epoch, positions)

        # Model
        V = self.vocab.num_characters
        self.model = Architecture(
            V, hidden_dim=cfg.hidden_dim, num_layers=cfg.num_layers,
            cell_dim=cfg.cell_dim, self_stabilize=cfg.self_stabilize,
        ).to(self.device)

        # Optimizer / loss
        self.criterion = nn.CrossEntropyLoss(reduction="sum")
        self.opt = torch.optim.SGD(self.model.parameters(), lr=cfg.lr, momentum=cfg.effective_momentum)

        # Outdir
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.outdir = Path(cfg.outdir or f"artifacts/{ts}")
        self.outdir.mkdir(parents=True, exist_ok=True)

        self.history: List[Dict[str, Any]] = []
        self.global_step = 0
        self._stop_requested = False

        if autostart:
            self.run()

    # -------- public API --------
    def run(self):
        cfg = self.cfg
        n_params, n_tensors = count_parameters(self.model)
        print(f"Data {cfg.corpus} has {len(self.text)} characters, "
              f"with {self.vocab.num_characters} unique characters.")
        print(f"Training {n_params} parameters in {n_tensors} parameter tensors")
        print(f"Running {cfg.epochs} epochs with {self.minibatches_per_epoch} minibatches per epoch")
        print()
        self._report(self._save_vocab_and_config)

        # running averages between reports, spanning epoch boundaries
        self._run_loss, self._run_err, self._run_count = 0.0, 0.0, 0
        epoch = 0
        for epoch in range(1, cfg.epochs + 1):
            start = datetime.now()
            print(f"Running training on epoch {epoch} of {cfg.epochs}")
            epoch_loss, epoch_err, count = 0.0, 0.0, 0
            for j in range(self.minibatches_per_epoch):
                if self._stop_requested:
                    break
                x, y = window_indices(self.encoded, j * cfg.stride, cfg.minibatch_size)
                loss, err = self.train_step(x, y)
                epoch_loss += loss; epoch_err += err; count += 1
                self._run_loss += loss; self._run_err += err; self._run_count += 1

                step = self.global_step
                self.global_step += 1
                if cfg.sample_frequency and step % cfg.sample_frequency == 0:
                    print(sample(self.model, self.vocab, "", cfg.sample_length,
                                 rng=self.rng, device=self.device))
                if cfg.report_every and step % cfg.report_every == 0:
                    self._print_report(epoch)

            elapsed = datetime.now() - start
            secs = elapsed.total_seconds()
            print(
                f"Finished epoch {epoch} in {secs} seconds "
                f"({int(secs // 3600):02d}:{int(secs % 3600 // 60):02d}:{int(secs % 60):02d}"
                f".{elapsed.microseconds // 1000:03d})"
            )
            row = {
                "epoch": epoch,
                "minibatches": count,
                "train_loss": epoch_loss / max(count, 1),
                "train_error": epoch_err / max(count, 1),
                "seconds": secs,
                "checkpoint": None,
            }
            try:
                row["checkpoint"] = str(self.save_checkpoint(f"epoch{epoch}.pth"))
                print(f"Saved model to {row['checkpoint']}")
            except PersistFailure as e:
                print(f"WARNING: {e}", file=sys.stderr)
                row["persist_error"] = str(e)
            self.history.append(row)

            if self._stop_requested:
                print("Stop requested, ending training.")
                break

        if cfg.report_every and self._run_count:
            self._print_report(epoch)
        self._finalize()

    def stop(self):
        """Ask a running loop to end after the current minibatch."""
        self._stop_requested = True

    def train_step(self, x: torch.Tensor, y: torch.Tensor) -> Tuple[float, float]:
        """One parameter update on a window of corpus indices. Returns (loss, error rate)."""
        self.model.train()
        V = self.vocab.num_characters
        try:
            x = nn.functional.one_hot(x, V).float().unsqueeze(0).to(self.device)   # [1, T, V]
            y = y.to(self.device)
            self.opt.zero_grad(set_to_none=True)
            logits, _ = self.model(x)
            logits = logits.view(-1, V)
            loss = self.criterion(logits, y)   # summed over the window
            loss.backward()
            nn.utils.clip_grad_value_(self.model.parameters(), self.cfg.clip)
            self.opt.step()
        except RuntimeError as e:
            raise FrameworkComputeFailure(self.global_step, str(e)) from e
        err = (logits.detach().argmax(dim=-1) != y).float().mean().item()
        return loss.item() / y.numel(), err

    def save_checkpoint(self, name: str) -> Path:
        path = self.outdir / name
        try:
            torch.save(self.model.state_dict(), path)
        except (OSError, RuntimeError, pickle.PicklingError) as e:
            raise PersistFailure(path, str(e)) from e
        return path

    # -------- internals --------
    def _print_report(self, epoch: int):
        first = self.global_step - self._run_count + 1
        print(
            f"Epoch {epoch:3d}: Minibatch [{first:6d}-{self.global_step:6d}] "
            f"CrossEntropyLoss = {self._run_loss / self._run_count:.6f}, "
            f"EvaluationCriterion = {self._run_err / self._run_count:.3f}"
        )
        self._run_loss, self._run_err, self._run_count = 0.0, 0.0, 0

    def _report(self, fn):
        try:
            fn()
        except PersistFailure as e:
            print(f"WARNING: {e}", file=sys.stderr)

    def _write(self, name: str, text: str):
        path = self.outdir / name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise PersistFailure(path, str(e)) from e

    def _save_vocab_and_config(self):
        self._write("vocab.json", self.vocab.to_json())
        self._write("config.json", json.dumps(asdict(self.cfg), indent=2))

    def _finalize(self):
        self._report(lambda: self.save_checkpoint("model.pth"))
        self._report(self._save_vocab_and_config)
        self._report(lambda: self._write("history.json", json.dumps(self.history, indent=2)))
        self._report(lambda: self._write(
            "README.txt",
            "Artifacts for a character-level LSTM language model.\n"
            f"- corpus: {self.cfg.corpus}\n"
            f"- device: {self.device}\n"
            f"- see config.json for full TrainerConfig\n"
            f"- epoch{{N}}.pth are per-epoch checkpoints, model.pth the final weights\n",
        ))
