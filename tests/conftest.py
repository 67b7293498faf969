import pytest

TEXT = "hello world\nthis is a tiny corpus for a tiny model\n"


@pytest.fixture
def corpus(tmp_path):
    p = tmp_path / "corpus.txt"
    p.write_text(TEXT, encoding="utf-8")
    return p


@pytest.fixture
def tiny_cfg(corpus, tmp_path):
    from charrnn import TrainerConfig
    return TrainerConfig(
        corpus=str(corpus), epochs=2, minibatch_size=8, hidden_dim=8, num_layers=1,
        sample_frequency=3, sample_length=10, report_every=2, seed=0,
        outdir=str(tmp_path / "run"), use_cpu=True,
    )
