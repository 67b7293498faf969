from __future__ import annotations

from typing import List, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

State = Tuple[torch.Tensor, torch.Tensor]   # (h, c)


class Stabilizer(nn.Module):
    """Droppo self-stabilizer: scales its input by a learned positive scalar.

    ``beta = softplus(f * alpha) / f``; alpha starts at ``ln(e^f - 1) / f`` so
    that beta is exactly 1 before training.
    """
    def __init__(self, steepness: float = 4.0):
        super().__init__()
        self.steepness = steepness
        self.alpha = nn.Parameter(torch.tensor(0.99537863))
    def forward(self, x):
        beta = F.softplus(self.steepness * self.alpha) / self.steepness
        return beta * x


class LSTMCell(nn.Module):
    """One LSTM step with the four gates packed in a single weight matrix.

    Gate order along the packed axis: forget, input, output, candidate.
    """
    def __init__(self, input_dim: int, hidden_dim: int, cell_dim: Optional[int] = None,
                 self_stabilize: bool = False):
        super().__init__()
        cell_dim = cell_dim or hidden_dim
        self.hidden_dim, self.cell_dim = hidden_dim, cell_dim
        self.W = nn.Parameter(torch.empty(4 * cell_dim, input_dim))
        self.H = nn.Parameter(torch.empty(4 * cell_dim, hidden_dim))
        self.b = nn.Parameter(torch.zeros(4 * cell_dim))
        nn.init.xavier_uniform_(self.W)
        nn.init.xavier_uniform_(self.H)
        if cell_dim != hidden_dim:
            self.P = nn.Parameter(torch.empty(hidden_dim, cell_dim))
            nn.init.xavier_uniform_(self.P)
        else:
            self.register_parameter("P", None)
        if self_stabilize:
            self.stab_h, self.stab_c = Stabilizer(), Stabilizer()
        else:
            self.stab_h = self.stab_c = None

    def initial_state(self, batch: int, like: torch.Tensor) -> State:
        h = like.new_zeros(batch, self.hidden_dim)
        c = like.new_zeros(batch, self.cell_dim)
        return h, c

    def forward(self, x: torch.Tensor, state: State) -> State:   # x: [B, D]
        h, c = state
        if self.stab_h is not None:
            h, c = self.stab_h(h), self.stab_c(c)
        gates = F.linear(x, self.W, self.b) + F.linear(h, self.H)   # [B, 4C]
        f, i, o, g = gates.chunk(4, dim=-1)
        c = torch.sigmoid(f) * c + torch.sigmoid(i) * torch.tanh(g)
        h = torch.sigmoid(o) * torch.tanh(c)
        if self.P is not None:
            h = F.linear(h, self.P)
        return h, c


class LSTM(nn.Module):
    """Runs an LSTMCell along the time axis of a [B, T, D] batch."""
    def __init__(self, input_dim: int, hidden_dim: int, cell_dim: Optional[int] = None,
                 self_stabilize: bool = False):
        super().__init__()
        self.cell = LSTMCell(input_dim, hidden_dim, cell_dim, self_stabilize)

    def forward(self, x: torch.Tensor, state: Optional[State] = None):
        if state is None:
            state = self.cell.initial_state(x.size(0), x)
        outputs = []
        for t in range(x.size(1)):
            state = self.cell(x[:, t], state)
            outputs.append(state[0])
        return torch.stack(outputs, dim=1), state   # [B, T, H]


_ACTIVATIONS = {None: None, "relu": torch.relu, "sigmoid": torch.sigmoid, "tanh": torch.tanh}


class Dense(nn.Module):
    def __init__(self, input_dim: int, output_dim: int, activation: Optional[str] = None):
        super().__init__()
        if activation not in _ACTIVATIONS:
            raise ValueError(f"unknown activation {activation!r}")
        self.linear = nn.Linear(input_dim, output_dim)
        nn.init.xavier_uniform_(self.linear.weight)
        nn.init.zeros_(self.linear.bias)
        self.activation = _ACTIVATIONS[activation]
    def forward(self, x):
        y = self.linear(x)
        return y if self.activation is None else self.activation(y)


class Architecture(nn.Module):
    """Stacked (Stabilizer -> LSTM) layers over one-hot characters, then Dense."""
    def __init__(self, num_chars: int, hidden_dim: int = 256, num_layers: int = 2,
                 cell_dim: Optional[int] = None, self_stabilize: bool = False):
        super().__init__()
        self.num_chars = num_chars
        self.stabilizers = nn.ModuleList()
        self.layers = nn.ModuleList()
        dim = num_chars
        for _ in range(num_layers):
            self.stabilizers.append(Stabilizer())
            self.layers.append(LSTM(dim, hidden_dim, cell_dim, self_stabilize))
            dim = hidden_dim
        self.out = Dense(dim, num_chars)

    def forward(self, x: torch.Tensor, state: Optional[List[State]] = None):
        # x: [B, T, V] one-hot
        if state is None:
            state = [None] * len(self.layers)
        new_state = []
        for stab, lstm, s in zip(self.stabilizers, self.layers, state):
            x, s = lstm(stab(x), s)
            new_state.append(s)
        return self.out(x), new_state   # [B, T, V]


def count_parameters(model: nn.Module) -> Tuple[int, int]:
    """(total elements, number of parameter tensors)"""
    params = list(model.parameters())
    return sum(p.numel() for p in params), len(params)
