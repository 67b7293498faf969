from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import json, pickle, random, torch
from .characters import Vocabulary
from .errors import DataUnavailable
from .model import Architecture
from .sampling import sample

_ARCH_KEYS = ("hidden_dim", "num_layers", "cell_dim", "self_stabilize")


def _load_state(model: torch.nn.Module, path: Path, device: torch.device):
    """Load a state dict into ``model``; any unreadable or mismatched file is DataUnavailable."""
    if not path.is_file():
        raise DataUnavailable(path)
    try:
        state = torch.load(path, map_location=device)
    except (OSError, RuntimeError, EOFError, ValueError, pickle.UnpicklingError) as e:
        raise DataUnavailable(path, str(e)) from e
    try:
        model.load_state_dict(state)
    except (RuntimeError, TypeError, AttributeError) as e:
        # wrong architecture sizes, or not a state dict at all
        raise DataUnavailable(path, str(e)) from e


def _read_arch(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DataUnavailable(path, str(e)) from e
    if not isinstance(data, dict):
        raise DataUnavailable(path, "expected a JSON object")
    return {k: data[k] for k in _ARCH_KEYS if k in data}


@dataclass
class CharRNN:
    model: torch.nn.Module
    vocab: Vocabulary
    device: torch.device
    outdir: Optional[Path] = None

    def sample(self, seed_text: str = "", length: int = 200, rng: Optional[random.Random] = None) -> str:
        return sample(self.model, self.vocab, seed_text, length, rng=rng, device=self.device)

    @classmethod
    def from_artifacts(cls, path: Union[str, Path], checkpoint: Optional[str] = None,
                       device: Optional[torch.device] = None) -> "CharRNN":
        """Load a trained model folder. ``checkpoint`` defaults to model.pth."""
        path = Path(path); device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        if not path.is_dir():
            raise DataUnavailable(path, "artifacts folder not found")
        vocab = Vocabulary.from_json(path / "vocab.json")
        arch = _read_arch(path / "config.json")
        model = Architecture(vocab.num_characters, **arch).to(device)
        _load_state(model, path / (checkpoint or "model.pth"), device)
        model.eval()
        return cls(model=model, vocab=vocab, device=device, outdir=path)

    @classmethod
    def from_corpus(cls, corpus: Union[str, Path], checkpoint: Union[str, Path], encoding: str = "utf-8",
                    device: Optional[torch.device] = None, **arch) -> "CharRNN":
        """Rebuild the vocabulary from the training corpus and load a bare checkpoint file."""
        device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        vocab, _ = Vocabulary.from_file(corpus, encoding=encoding)
        model = Architecture(vocab.num_characters, **arch).to(device)
        _load_state(model, Path(checkpoint), device)
        model.eval()
        return cls(model=model, vocab=vocab, device=device, outdir=Path(checkpoint).parent)
