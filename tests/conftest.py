import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from vocage.cards import CardCollection, load
from vocage.session import Session

WORDS: List[Dict[str, Any]] = [
    {"words": ["chat"], "transcriptions": ["ʃa"], "translations": ["cat"], "tags": ["noun", "animal"]},
    {"words": ["chien"], "transcriptions": ["ʃjɛ̃"], "translations": ["dog"], "tags": ["noun", "animal"]},
    {"words": ["manger"], "transcriptions": ["mɑ̃ʒe"], "translations": ["to eat"], "tags": ["verb"]},
    {"words": ["maison"], "transcriptions": ["mɛzɔ̃"], "translations": ["house"], "tags": ["noun"]},
    {"words": ["courir"], "transcriptions": ["kuʁiʁ"], "translations": ["to run"], "tags": ["verb"],
     "examples": ["Il court vite."], "comments": ["irregular"]},
]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def set_file(tmp_path: Path) -> Path:
    path = tmp_path / "french.json"
    path.write_text(json.dumps(WORDS, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def collection(set_file: Path) -> CardCollection:
    return load(set_file)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(tmp_path: Path, set_file: Path, collection: CardCollection, clock: FakeClock) -> Session:
    s = Session(tmp_path / "sessions" / "french.json", set_file, collection, clock=clock)
    s.reconcile()
    return s
