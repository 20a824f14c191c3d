from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Protocol


logger = logging.getLogger(__name__)


DEFAULT_WORDS = [
    "apple",
    "banana",
    "house",
    "cat",
    "dog",
    "car",
    "bicycle",
    "tree",
    "sun",
    "moon",
    "star",
    "book",
    "phone",
    "computer",
    "keyboard",
    "guitar",
    "pizza",
    "cake",
    "ball",
    "river",
]


class WordSupplier(Protocol):
    def list_words(self) -> list[str]: ...


def _clean(words) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for w in words:
        if not isinstance(w, str):
            continue
        w = w.strip()
        if w and w not in seen:
            seen.add(w)
            out.append(w)
    return out


class StaticWordSupplier:
    def __init__(self, words: list[str] | None = None) -> None:
        self._words = _clean(DEFAULT_WORDS if words is None else words)

    def list_words(self) -> list[str]:
        return list(self._words)


class FileWordSupplier:
    """Reads one word per line on every call, so edits apply to the next offer."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def list_words(self) -> list[str]:
        text = self.path.read_text(encoding="utf-8")
        return _clean(line for line in text.splitlines() if not line.lstrip().startswith("#"))


def pick_words(words: list[str], count: int) -> list[str]:
    unique = _clean(words)
    return random.sample(unique, min(max(count, 0), len(unique)))


def build_word_supplier(config) -> WordSupplier:
    path = getattr(config, "WORDS_FILE", "") or ""
    if path:
        logger.info("using word file %s", path)
        return FileWordSupplier(path)
    return StaticWordSupplier()
