from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Tuple, Union

import torch

from .errors import DataUnavailable


class Vocabulary:
    """Sorted set of the distinct characters of a corpus, indexed densely."""
    def __init__(self, characters: str):
        self.characters = ''.join(sorted(set(characters)))
        self.num_characters = len(self.characters)
        self.char_to_index = {c: i for i, c in enumerate(self.characters)}
        self.index_to_char = {i: c for i, c in enumerate(self.characters)}

    @classmethod
    def from_text(cls, text: str) -> "Vocabulary":
        return cls(text)

    @classmethod
    def from_file(cls, path: Union[str, Path], encoding: str = "utf-8") -> Tuple["Vocabulary", str]:
        """Read a corpus and build its vocabulary. Returns ``(vocab, text)``."""
        path = Path(path)
        if encoding.lower().replace("_", "-") == "utf-8":
            encoding = "utf-8-sig"   # tolerate a BOM
        try:
            text = path.read_text(encoding=encoding)
        except FileNotFoundError:
            raise DataUnavailable(path) from None
        except (OSError, UnicodeError) as e:
            raise DataUnavailable(path, str(e)) from e
        if not text:
            raise DataUnavailable(path, "corpus is empty")
        return cls(text), text

    def __len__(self) -> int:
        return self.num_characters

    def __contains__(self, ch: str) -> bool:
        return ch in self.char_to_index

    def read(self, indices: Iterable) -> str:
        return ''.join(self.index_to_char[int(i)] for i in indices)

    def index(self, text: str) -> torch.Tensor:
        try:
            return torch.tensor([self.char_to_index[c] for c in text], dtype=torch.long)
        except KeyError as e:
            raise ValueError(f"character {e.args[0]!r} is not in the vocabulary") from None

    def one_hot(self, text_or_indices) -> torch.Tensor:
        """[T, V] float tensor with a single 1 per row."""
        if isinstance(text_or_indices, str):
            text_or_indices = self.index(text_or_indices)
        idx = torch.as_tensor(text_or_indices, dtype=torch.long)
        return torch.nn.functional.one_hot(idx, self.num_characters).float()

    # -------- persistence --------
    def to_json(self) -> str:
        return json.dumps({"characters": self.characters}, ensure_ascii=False, indent=2)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "Vocabulary":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise DataUnavailable(path) from None
        except (OSError, ValueError) as e:
            raise DataUnavailable(path, str(e)) from e
        return cls(data["characters"])
