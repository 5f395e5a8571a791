"""
Vocabulary cards and the collections they are loaded into.

A card's identity is derived from its content: two records with the same
words, transcriptions and translations get the same id and only the first is
kept when a collection is loaded.
"""

from __future__ import annotations
import csv
import enum
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import yaml

from .errors import LoadError, UnknownField

logger = logging.getLogger(__name__)

LIST_DELIMITER = "|"


class Field(enum.Enum):
    WORD = "word"
    PHON = "phon"
    TRANSLATION = "translation"
    EXAMPLE = "example"
    COMMENT = "comment"
    TAG = "tag"

    @property
    def attribute(self) -> str:
        return _ATTRIBUTES[self]

    @classmethod
    def parse(cls, name: str) -> "Field":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise UnknownField(name) from None

    @classmethod
    def parse_list(cls, names: str) -> List["Field"]:
        """Parse a comma separated list of field names, e.g. ``"word,phon"``."""
        return [cls.parse(n) for n in names.split(",") if n.strip()]


_ATTRIBUTES = {
    Field.WORD: "words",
    Field.PHON: "transcriptions",
    Field.TRANSLATION: "translations",
    Field.EXAMPLE: "examples",
    Field.COMMENT: "comments",
    Field.TAG: "tags",
}

# keys accepted in JSON/YAML records, mapped to the card attribute
_KEY_ALIASES = {
    "words": "words", "word": "words",
    "transcriptions": "transcriptions", "transcription": "transcriptions", "phon": "transcriptions",
    "translations": "translations", "translation": "translations",
    "examples": "examples", "example": "examples",
    "comments": "comments", "comment": "comments",
    "tags": "tags", "tag": "tags",
}

TSV_COLUMNS = [Field.WORD, Field.PHON, Field.TRANSLATION, Field.EXAMPLE, Field.COMMENT, Field.TAG]


def card_id(words: Sequence[str], transcriptions: Sequence[str], translations: Sequence[str]) -> str:
    h = hashlib.md5()
    for part in (words, transcriptions, translations):
        h.update("\x1f".join(part).encode("utf-8"))
        h.update(b"\x1e")
    return h.hexdigest()


@dataclass(frozen=True)
class Card:
    id: str
    words: Tuple[str, ...]
    transcriptions: Tuple[str, ...] = ()
    translations: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()
    comments: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    @classmethod
    def create(cls, words: Sequence[str], transcriptions: Sequence[str] = (),
               translations: Sequence[str] = (), examples: Sequence[str] = (),
               comments: Sequence[str] = (), tags: Sequence[str] = ()) -> "Card":
        """Build a card, computing its content id."""
        words, transcriptions, translations = tuple(words), tuple(transcriptions), tuple(translations)
        return cls(
            id=card_id(words, transcriptions, translations),
            words=words,
            transcriptions=transcriptions,
            translations=translations,
            examples=tuple(examples),
            comments=tuple(comments),
            tags=tuple(tags),
        )

    def values(self, fld: Field) -> Tuple[str, ...]:
        return getattr(self, fld.attribute)

    def __str__(self) -> str:
        return " | ".join(self.words)


class CardCollection:
    """Ordered, id-indexed set of cards loaded from ``path``."""

    def __init__(self, cards: Sequence[Card] = (), path: Optional[Union[str, Path]] = None):
        self.path = str(path) if path is not None else None
        self.cards: List[Card] = []
        self._index: Dict[str, Card] = {}
        for card in cards:
            if card.id in self._index:
                logger.debug("Dropping duplicate card %s (%s)", card.id, card)
                continue
            self._index[card.id] = card
            self.cards.append(card)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CardCollection":
        return load(path)

    def contains(self, card_id: str) -> bool:
        return card_id in self._index

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._index

    def get(self, card_id: str) -> Optional[Card]:
        return self._index.get(card_id)

    def find_by_word(self, word: str) -> Optional[Card]:
        for card in self.cards:
            if word in card.words:
                return card
        return None

    def ids(self) -> List[str]:
        return [card.id for card in self.cards]

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


# ----------------------------------------------------------------------
# Loaders
# ----------------------------------------------------------------------
def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    value = str(value).strip()
    return [value] if value else []


def card_from_record(record: Any) -> Card:
    """Convert a mapping from a JSON/YAML set into a card."""
    if not isinstance(record, dict):
        raise ValueError(f"expected a mapping, got {type(record).__name__}")
    values: Dict[str, List[str]] = {}
    for key, value in record.items():
        attr = _KEY_ALIASES.get(str(key).strip().lower())
        if attr is None:
            continue
        values.setdefault(attr, []).extend(_as_list(value))
    if not values.get("words"):
        raise ValueError("record has no words")
    return Card.create(**values)


def _records_from_document(data: Any) -> List[Any]:
    if isinstance(data, dict) and "items" in data:
        data = data["items"]
    if not isinstance(data, list):
        raise ValueError("expected a list of cards or an object with an 'items' list")
    return data


def _split_cell(cell: str) -> List[str]:
    return [v.strip() for v in cell.split(LIST_DELIMITER) if v.strip()]


def _cards_from_tsv(handle) -> List[Card]:
    cards: List[Card] = []
    columns = TSV_COLUMNS
    first = True
    for row in csv.reader(handle, delimiter="\t", quoting=csv.QUOTE_NONE):
        if not row or not any(c.strip() for c in row) or row[0].startswith("#"):
            continue
        if first:
            first = False
            try:
                header = [Field.parse(c) for c in row]
            except UnknownField:
                header = None
            if header:
                columns = header
                continue
        values: Dict[str, List[str]] = {}
        for fld, cell in zip(columns, row):
            values.setdefault(fld.attribute, []).extend(_split_cell(cell))
        if not values.get("words"):
            raise ValueError(f"line without a word: {row!r}")
        cards.append(Card.create(**values))
    return cards


def load(path: Union[str, Path]) -> CardCollection:
    """Load a vocabulary set; the format is chosen by extension.

    Raises LoadError for unreadable files, unknown extensions and malformed
    content.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml", ".tsv"):
        raise LoadError(str(path), "Unrecognized extension")
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            if suffix == ".tsv":
                cards = _cards_from_tsv(f)
            elif suffix == ".json":
                cards = [card_from_record(r) for r in _records_from_document(json.load(f))]
            else:
                cards = [card_from_record(r) for r in _records_from_document(yaml.safe_load(f))]
    except OSError as e:
        raise LoadError(str(path), f"Unable to read file: {e}") from e
    except (ValueError, yaml.YAMLError, csv.Error) as e:
        raise LoadError(str(path), f"Malformed vocabulary set: {e}") from e

    collection = CardCollection(cards, path)
    logger.debug("Loaded %d cards (%d records) from %s", len(collection), len(cards), path)
    return collection
