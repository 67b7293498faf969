import pytest
import torch

from charrnn import Vocabulary, CorpusWindows, window
from charrnn.datasets import window_indices, num_positions


def test_ab_ab_window():
    v = Vocabulary.from_text("ab ab")
    enc = v.index("ab ab")
    x, y = window(enc, 0, 4, v.num_characters)
    assert x.shape == y.shape == (4, 3)
    assert v.read(x.argmax(dim=1)) == "ab a"
    assert v.read(y.argmax(dim=1)) == "b ab"


def test_targets_are_inputs_shifted_by_one():
    text = "to be or not to be, that is the question"
    v = Vocabulary.from_text(text)
    enc = v.index(text)
    w = 7
    for i in range(len(text) - w):
        x, y = window_indices(enc, i, w)
        assert len(x) == len(y) == w
        assert torch.equal(x[1:], y[:-1])
        assert v.read(x) == text[i:i + w]
        assert v.read(y) == text[i + 1:i + w + 1]


def test_truncates_from_position_at_corpus_end():
    text = "abcdefgh"
    v = Vocabulary.from_text(text)
    enc = v.index(text)
    x, y = window_indices(enc, 5, 10)
    assert v.read(x) == "fg"
    assert v.read(y) == "gh"


def test_no_window_past_last_character():
    enc = Vocabulary.from_text("abc").index("abc")
    with pytest.raises(IndexError):
        window_indices(enc, 2, 4)


def test_num_positions():
    assert num_positions(1) == 0
    assert num_positions(2) == 1
    assert num_positions(10) == 9
    assert num_positions(10, stride=4) == 3


def test_corpus_windows_dataset():
    text = "hello world"
    v = Vocabulary.from_text(text)
    ds = CorpusWindows(v.index(text), size=4, vocab_size=len(v), stride=3)
    assert len(ds) == 4
    x, y = ds[1]
    assert v.read(x.argmax(dim=1)) == "lo w"
    assert v.read(y) == "o wo"
    x, y = ds[-1]
    assert v.read(x.argmax(dim=1)) == "l"
    assert v.read(y) == "d"
    with pytest.raises(IndexError):
        ds[len(ds)]
