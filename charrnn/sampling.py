"""
Autoregressive character sampling.

The model's recurrent state is carried explicitly from one step to the next,
so each new character costs a single one-step forward pass.
"""

from __future__ import annotations

import random
from typing import Optional

import torch
import torch.nn as nn

from .characters import Vocabulary


def softmax(logits: torch.Tensor) -> torch.Tensor:
    logits = logits.detach().double().flatten()
    e = torch.exp(logits - logits.max())   # shift keeps exp finite
    return e / e.sum()


def categorical(logits: torch.Tensor, rng: Optional[random.Random] = None) -> int:
    """Inverse-CDF draw of one index from softmax(logits)."""
    rng = rng or random
    probs = softmax(logits)
    cdf = torch.cumsum(probs, dim=0)
    u = torch.tensor([rng.random()], dtype=cdf.dtype)
    idx = int(torch.searchsorted(cdf, u, right=True)[0])
    # u beyond the rounded total mass
    return min(idx, len(probs) - 1)


@torch.no_grad()
def sample(model: nn.Module,
           vocab: Vocabulary,
           seed_text: str = "",
           target_length: int = 50,
           rng: Optional[random.Random] = None,
           device: Optional[torch.device] = None) -> str:
    """Prime ``model`` with ``seed_text`` and extend it to ``target_length`` characters."""
    rng = rng or random
    if device is None:
        device = next(model.parameters()).device
    if not seed_text:
        seed_text = vocab.index_to_char[rng.randrange(vocab.num_characters)]
    out = vocab.index(seed_text).tolist()

    was_training = model.training
    model.eval()
    try:
        x = vocab.one_hot(out).unsqueeze(0).to(device)   # [1, T, V]
        logits, state = model(x)
        while len(out) < target_length:
            nxt = categorical(logits[0, -1].cpu(), rng)
            out.append(nxt)
            x = vocab.one_hot([nxt]).unsqueeze(0).to(device)
            logits, state = model(x, state)
    finally:
        model.train(was_training)
    return vocab.read(out)
