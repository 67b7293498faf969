from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class CharRNNError(Exception):
    """Base class for every error raised by charrnn."""


class DataUnavailable(CharRNNError):
    """A corpus, vocabulary or checkpoint file is missing or unreadable."""
    def __init__(self, path: Union[str, Path], reason: str = "not found"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class FrameworkComputeFailure(CharRNNError):
    """Forward, backward or optimizer step failed inside torch."""
    def __init__(self, step: int, message: str):
        self.step = step
        super().__init__(f"minibatch {step}: {message}")


class PersistFailure(CharRNNError):
    """A checkpoint could not be written."""
    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        super().__init__(f"could not save {self.path}" + (f": {reason}" if reason else ""))
