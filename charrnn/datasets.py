from __future__ import annotations

from typing import Tuple

import torch
import torch.nn.functional as F
import torch.utils.data as data


def window_indices(encoded: torch.Tensor, position: int, size: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """Index slices ``corpus[p:p+n]`` and ``corpus[p+1:p+1+n]``.

    ``n`` is ``size`` unless the corpus ends first, in which case the window
    shrinks to what remains after ``position``.
    """
    n = min(size, len(encoded) - position - 1)
    if position < 0 or n <= 0:
        raise IndexError(f"no window at position {position} in a corpus of {len(encoded)} characters")
    return encoded[position:position + n], encoded[position + 1:position + 1 + n]


def window(encoded: torch.Tensor, position: int, size: int, vocab_size: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """One-hot ``(inputs, targets)``, each [n, vocab_size]."""
    x, y = window_indices(encoded, position, size)
    return F.one_hot(x, vocab_size).float(), F.one_hot(y, vocab_size).float()


def num_positions(length: int, stride: int = 1) -> int:
    """Number of window starts ``0, stride, ...`` that leave at least one target."""
    if length < 2:
        return 0
    return (length - 2) // stride + 1


class CorpusWindows(data.Dataset):
    """Windows of an encoded corpus: one-hot inputs, index targets."""
    def __init__(self, encoded: torch.Tensor, size: int, vocab_size: int, stride: int = 1):
        self.data = encoded
        self.size = size
        self.vocab_size = vocab_size
        self.stride = stride
    def __len__(self):
        return num_positions(len(self.data), self.stride)
    def __getitem__(self, idx):
        if idx < 0:
            idx += len(self)
        if not 0 <= idx < len(self):
            raise IndexError(idx)
        x, y = window_indices(self.data, idx * self.stride, self.size)
        return F.one_hot(x, self.vocab_size).float(), y.long()
