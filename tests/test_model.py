import torch

from charrnn import Architecture
from charrnn.model import Stabilizer, LSTMCell, Dense, count_parameters


def test_forward_shapes():
    model = Architecture(num_chars=5, hidden_dim=8, num_layers=2)
    x = torch.nn.functional.one_hot(torch.randint(0, 5, (3, 7)), 5).float()
    logits, state = model(x)
    assert logits.shape == (3, 7, 5)
    assert len(state) == 2
    h, c = state[0]
    assert h.shape == c.shape == (3, 8)


def test_carried_state_matches_full_sequence():
    torch.manual_seed(0)
    model = Architecture(num_chars=4, hidden_dim=6, num_layers=2).eval()
    x = torch.nn.functional.one_hot(torch.tensor([[0, 3, 1, 2, 2]]), 4).float()
    with torch.no_grad():
        full, _ = model(x)
        state, steps = None, []
        for t in range(x.size(1)):
            out, state = model(x[:, t:t + 1], state)
            steps.append(out)
    assert torch.allclose(full, torch.cat(steps, dim=1), atol=1e-6)


def test_stabilizer_starts_at_identity():
    s = Stabilizer()
    x = torch.randn(4, 3)
    assert torch.allclose(s(x), x, atol=1e-5)


def test_cell_projection_and_self_stabilization():
    cell = LSTMCell(input_dim=3, hidden_dim=4, cell_dim=6, self_stabilize=True)
    x = torch.randn(2, 3)
    h, c = cell(x, cell.initial_state(2, x))
    assert h.shape == (2, 4)
    assert c.shape == (2, 6)
    assert cell.P is not None and cell.stab_h is not None


def test_dense_activation():
    d = Dense(3, 2, activation="sigmoid")
    y = d(torch.randn(5, 3))
    assert ((y > 0) & (y < 1)).all()


def test_count_parameters():
    model = Architecture(num_chars=5, hidden_dim=8, num_layers=1)
    total, tensors = count_parameters(model)
    # stabilizer alpha, W, H, b, dense weight + bias
    assert tensors == 6
    assert total == 1 + 32 * 5 + 32 * 8 + 32 + 8 * 5 + 5
