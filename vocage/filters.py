"""
Filter expressions over card fields.

    (empty)              matches every card
    word=value           the field contains ``value`` exactly
    #value               short for ``tag=value``
    any(q1,q2,...)       at least one sub-filter matches
    all(q1,q2,...)       every sub-filter matches
    not(q)               the sub-filter does not match

Recognized fields: word, phon, translation, example, comment, tag.

The arguments of any() and all() are split on every comma, so a sub-filter
can not itself contain a comma: ``any(all(#a,#b),#c)`` is not supported,
while ``all(not(#a),#b)`` is.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .cards import Card, Field
from .errors import ParseError


class Filter:
    def matches(self, card: Card) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class MatchAll(Filter):
    def matches(self, card: Card) -> bool:
        return True

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class FieldIs(Filter):
    field: Field
    value: str

    def matches(self, card: Card) -> bool:
        return self.value in card.values(self.field)

    def __str__(self) -> str:
        if self.field is Field.TAG:
            return f"#{self.value}"
        return f"{self.field.value}={self.value}"


@dataclass(frozen=True)
class AnyOf(Filter):
    filters: Tuple[Filter, ...]

    def matches(self, card: Card) -> bool:
        return any(f.matches(card) for f in self.filters)

    def __str__(self) -> str:
        return "any(" + ",".join(str(f) for f in self.filters) + ")"


@dataclass(frozen=True)
class AllOf(Filter):
    filters: Tuple[Filter, ...]

    def matches(self, card: Card) -> bool:
        return all(f.matches(card) for f in self.filters)

    def __str__(self) -> str:
        return "all(" + ",".join(str(f) for f in self.filters) + ")"


@dataclass(frozen=True)
class Not(Filter):
    filter: Filter

    def matches(self, card: Card) -> bool:
        return not self.filter.matches(card)

    def __str__(self) -> str:
        return f"not({self.filter})"


def _arguments(query: str, prefix: str) -> str:
    if not query.endswith(")"):
        raise ParseError(query, "Missing closing parenthesis")
    return query[len(prefix):-1].strip()


def _has_top_level_comma(args: str) -> bool:
    depth = 0
    for c in args:
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif c == "," and depth == 0:
            return True
    return False


def parse(query: str) -> Filter:
    """Parse a query string into a Filter. Raises ParseError."""
    if query is None:
        return MatchAll()
    query = query.strip()
    if not query:
        return MatchAll()

    lowered = query.lower()
    for prefix, cls in (("any(", AnyOf), ("all(", AllOf)):
        if lowered.startswith(prefix):
            args = _arguments(query, prefix)
            parts = [p for p in args.split(",") if p.strip()]
            if not parts:
                raise ParseError(query, f"{prefix[:-1]}() needs at least one argument")
            return cls(tuple(parse(p) for p in parts))
    if lowered.startswith("not("):
        args = _arguments(query, "not(")
        if not args:
            raise ParseError(query, "not() needs an argument")
        if _has_top_level_comma(args):
            raise ParseError(query, "not() takes a single argument")
        return Not(parse(args))

    if query.startswith("#"):
        value = query[1:].strip()
        if not value:
            raise ParseError(query, "Empty tag")
        return FieldIs(Field.TAG, value)

    if "=" in query:
        name, value = query.split("=", 1)
        value = value.strip()
        if not value:
            raise ParseError(query, "Empty value")
        return FieldIs(Field.parse(name), value)

    raise ParseError(query)
