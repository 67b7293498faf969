from .characters import Vocabulary
from .datasets import CorpusWindows, window
from .errors import CharRNNError, DataUnavailable, FrameworkComputeFailure, PersistFailure
from .model import Architecture
from .sampling import categorical, sample
from .trainer import CharRNNTrainer, TrainerConfig
from .runtime import CharRNN

__all__ = [
    "Vocabulary", "CorpusWindows", "window", "Architecture",
    "categorical", "sample", "CharRNNTrainer", "TrainerConfig", "CharRNN",
    "CharRNNError", "DataUnavailable", "FrameworkComputeFailure", "PersistFailure",
    "train", "load",
]
__version__ = "0.1.0"

def train(corpus: str, *,
          epochs: int = 50,
          minibatch_size: int = 100,
          lr: float = 1e-3,
          hidden_dim: int = 256,
          num_layers: int = 2,
          seed: int | None = None,          # training RNG (None = random)
          outdir: str | None = None,
          use_cpu: bool = False,
          **kwargs) -> CharRNN:
    """Train a model on ``corpus`` and return a CharRNN runtime over its final weights."""
    cfg = TrainerConfig(
        corpus=corpus, epochs=epochs, minibatch_size=minibatch_size, lr=lr,
        hidden_dim=hidden_dim, num_layers=num_layers, seed=seed,
        outdir=outdir, use_cpu=use_cpu, **kwargs
    )
    trainer = CharRNNTrainer(cfg=cfg, autostart=True)
    return CharRNN.from_artifacts(trainer.outdir, device=trainer.device)

def load(path: str, checkpoint: str | None = None) -> CharRNN:
    """Load a previously trained model from an artifacts folder."""
    return CharRNN.from_artifacts(path, checkpoint=checkpoint)
