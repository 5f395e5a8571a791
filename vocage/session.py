"""
The scheduling engine.

A Session binds a card collection to an ordered list of Leitner decks and keeps
per-card statistics, a navigation cursor and free-form settings. Cards move
one deck up when promoted (answered correctly) and one deck down when demoted.
"""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

from . import scheduler
from .cards import Card, CardCollection, Field, load
from .config import DEFAULT_DECK_NAMES
from .errors import (
    AtFirstDeck,
    InvalidCardIndex,
    InvalidDeck,
    InvalidDeckOrCard,
    NoDecksAtAll,
    NoFurtherDecks,
    NoSuchDeck,
)
from .filters import Filter, MatchAll, parse

logger = logging.getLogger(__name__)

DEFAULT_MODE = "flashcards"
DEFAULT_OPTIONS = 4
MAX_PICK_ATTEMPTS = 100


@dataclass(frozen=True)
class Move:
    """Outcome of a promotion or demotion."""
    card_id: str
    source: int
    target: int
    moved: bool


class Session:
    def __init__(
        self,
        filename: Union[str, Path],
        set_filename: Union[str, Path],
        collection: Optional[CardCollection] = None,
        deck_names: Optional[Sequence[str]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.filename = str(filename)
        self.set_filename = str(set_filename)
        self.deck_names: List[str] = list(DEFAULT_DECK_NAMES if deck_names is None else deck_names)
        self.decks: List[List[str]] = [[] for _ in self.deck_names]
        self.correct: Dict[str, int] = {}
        self.incorrect: Dict[str, int] = {}
        self.lastvisit: Dict[str, int] = {}
        self.deck_index: Optional[int] = None
        self.card_index: Optional[int] = None
        self.flags: Set[str] = set()
        self.settings: Dict[str, str] = {}
        self.intsettings: Dict[str, int] = {}
        self.filter: Filter = MatchAll()
        self.collection = collection if collection is not None else CardCollection(path=set_filename)
        self.clock = clock
        self.rng = random.Random()

    @classmethod
    def create(cls, filename: Union[str, Path], set_filename: Union[str, Path],
               deck_names: Optional[Sequence[str]] = None) -> "Session":
        """Start a fresh session: every card of the set begins in deck 0."""
        session = cls(filename, set_filename, load(set_filename), deck_names)
        session.reconcile()
        return session

    def save(self, filename: Optional[Union[str, Path]] = None) -> Path:
        from .persistence import save_session
        return save_session(self, filename)

    def now(self) -> int:
        return int(self.clock())

    # ------------------------------------------------------------------
    # Decks
    # ------------------------------------------------------------------
    def attach(self, collection: CardCollection) -> Tuple[int, int]:
        """Bind a (re)loaded collection and reconcile the decks against it."""
        self.collection = collection
        return self.reconcile()

    def reconcile(self) -> Tuple[int, int]:
        """
        Make every card of the collection appear in exactly one deck.

        Ids that are no longer in the collection (orphans) are purged along
        with their statistics, duplicates are dropped and cards that are in
        no deck yet are appended to deck 0.

        Returns (purged, added).
        """
        seen: Set[str] = set()
        purged = 0
        for deck in self.decks:
            kept = []
            for card_id in deck:
                if card_id in seen or card_id not in self.collection:
                    purged += 1
                    continue
                seen.add(card_id)
                kept.append(card_id)
            deck[:] = kept

        for stats in (self.correct, self.incorrect, self.lastvisit):
            for card_id in [k for k in stats if k not in self.collection]:
                del stats[card_id]

        added = 0
        if self.decks:
            for card_id in self.collection.ids():
                if card_id not in seen:
                    self.decks[0].append(card_id)
                    added += 1
        elif len(self.collection):
            logger.warning("Session %s has no decks, %d cards are unassigned", self.filename, len(self.collection))

        if self.deck_index is not None and not 0 <= self.deck_index < len(self.decks):
            self.deck_index = None
            self.card_index = None
        if self.card_index is not None and (
            self.deck_index is None or not 0 <= self.card_index < len(self.decks[self.deck_index])
        ):
            self.card_index = None

        if purged or added:
            logger.info("Reconciled decks: %d orphans purged, %d new cards added", purged, added)
        return purged, added

    def deck_of(self, card_id: str) -> Optional[int]:
        for i, deck in enumerate(self.decks):
            if card_id in deck:
                return i
        return None

    def cards_in_deck(self, index: int) -> List[Card]:
        if not 0 <= index < len(self.decks):
            raise InvalidDeck(index)
        return [c for c in (self.collection.get(i) for i in self.decks[index]) if c is not None]

    def deck_counts(self) -> List[Tuple[str, int]]:
        return [(name, len(deck)) for name, deck in zip(self.deck_names, self.decks)]

    def current_deck_name(self) -> Optional[str]:
        if self.deck_index is None:
            return None
        return self.deck_names[self.deck_index]

    def current_card(self) -> Optional[Card]:
        if self.deck_index is None or self.card_index is None:
            return None
        deck = self.decks[self.deck_index]
        if not 0 <= self.card_index < len(deck):
            return None
        return self.collection.get(deck[self.card_index])

    def _current(self) -> Tuple[int, int, str]:
        card = self.current_card()
        if card is None:
            raise InvalidDeckOrCard()
        return self.deck_index, self.card_index, card.id  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def has_flag(self, key: str) -> bool:
        return key in self.flags

    def set_flag(self, key: str) -> None:
        self.flags.add(key)

    def unset_flag(self, key: str) -> None:
        self.flags.discard(key)

    def toggle_flag(self, key: str) -> bool:
        """Flip a flag, returns whether it is now enabled."""
        if key in self.flags:
            self.flags.remove(key)
            return False
        self.flags.add(key)
        return True

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: str) -> None:
        self.settings[key] = str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        return self.intsettings.get(key, default)

    def set_int(self, key: str, value: int) -> None:
        self.intsettings[key] = int(value)

    def unset(self, key: str) -> None:
        """Remove a key from every settings store."""
        self.flags.discard(key)
        self.settings.pop(key, None)
        self.intsettings.pop(key, None)

    def interval(self, deck: int) -> int:
        """Due interval of a deck in hours (0: always due)."""
        return self.get_int(f"due.{deck}", 0)

    def set_interval(self, deck: int, hours: int) -> None:
        if not 0 <= deck < len(self.decks):
            raise InvalidDeck(deck)
        self.set_int(f"due.{deck}", hours)

    @property
    def mode(self) -> str:
        return self.settings.get("mode", DEFAULT_MODE)

    def fields(self, key: str) -> List[Field]:
        """Typed fields configured under a string setting such as ``flashcards.front``."""
        return Field.parse_list(self.settings.get(key, ""))

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------
    @property
    def filter_query(self) -> str:
        return str(self.filter)

    def set_filter(self, query: str) -> Filter:
        """Parse and activate a filter. On ParseError the old filter stays active."""
        self.filter = parse(query)
        return self.filter

    def clear_filter(self) -> None:
        self.filter = MatchAll()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def score(self, card_id: str) -> float:
        return scheduler.score(self.correct.get(card_id, 0), self.incorrect.get(card_id, 0))

    def is_due(self, card_id: str, deck: int, now: Optional[int] = None) -> bool:
        if now is None:
            now = self.now()
        return scheduler.is_due(self.lastvisit.get(card_id), self.interval(deck), now)

    def iter_cards(
        self,
        deck_index: int = 0,
        card_index: Optional[int] = None,
        multideck: Optional[bool] = None,
        flt: Optional[Filter] = None,
        showall: Optional[bool] = None,
        reverse: bool = False,
        now: Optional[int] = None,
    ) -> Iterator[Tuple[int, int, Card]]:
        """
        Walk the decks from a position, yielding (deck, index, card).

        ``card_index`` is exclusive; None starts at the beginning of the deck
        (or its end when ``reverse``). Cards not matching the filter, or not
        due unless ``showall``, are skipped. With ``multideck`` the walk goes
        on into the following (preceding) decks.
        """
        if multideck is None:
            multideck = self.has_flag("multideck")
        if showall is None:
            showall = self.has_flag("showall")
        if flt is None:
            flt = self.filter
        if now is None:
            now = self.now()

        step = -1 if reverse else 1
        d = deck_index
        while 0 <= d < len(self.decks):
            deck = self.decks[d]
            if reverse:
                start = len(deck) - 1 if card_index is None else card_index - 1
                positions = range(min(start, len(deck) - 1), -1, -1)
            else:
                start = 0 if card_index is None else card_index + 1
                positions = range(start, len(deck))
            for i in positions:
                if i >= len(deck):
                    break
                card = self.collection.get(deck[i])
                if card is None or not flt.matches(card):
                    continue
                if not showall and not self.is_due(card.id, d, now):
                    continue
                yield d, i, card
            if not multideck:
                return
            d += step
            card_index = None

    def pick_card(self, rng: Optional[random.Random] = None) -> Optional[Card]:
        """Weighted random pick among the cards matching the active filter."""
        pool = [c for c in self.collection if self.filter.matches(c)]
        return scheduler.weighted_choice(pool, [self.score(c.id) for c in pool], rng or self.rng)

    def pick_options(self, count: Optional[int] = None,
                     rng: Optional[random.Random] = None) -> Tuple[List[Card], int]:
        """
        Multiple choice options for the current card.

        Returns (options, correct_index). The other slots are filled with
        weighted picks; when fewer distinct candidates exist than requested the
        option list is shortened instead.
        """
        rng = rng or self.rng
        _, _, current_id = self._current()
        n = max(1, count if count is not None else self.get_int("options", DEFAULT_OPTIONS))

        pool = [c for c in self.collection if c.id != current_id and self.filter.matches(c)]
        if len(pool) < n - 1:
            logger.warning("Only %d candidates for %d options, shortening", len(pool), n)
            n = len(pool) + 1
        weights = [self.score(c.id) for c in pool]

        correct_index = rng.randrange(n)
        options: List[Optional[str]] = [None] * n
        options[correct_index] = current_id
        chosen = {current_id}
        for slot in range(n):
            if options[slot] is not None:
                continue
            for _ in range(MAX_PICK_ATTEMPTS):
                card = scheduler.weighted_choice(pool, weights, rng)
                if card is not None and card.id not in chosen:
                    break
            else:
                logger.debug("Weighted pick gave only duplicates, taking the next free candidate")
                card = next(c for c in pool if c.id not in chosen)
            options[slot] = card.id
            chosen.add(card.id)

        return [self.collection.get(o) for o in options], correct_index  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def select_deck(self, index: int) -> None:
        """Select a deck by 1-based index; valid for 1 <= index < number of decks."""
        if index < 1 or index >= len(self.decks):
            raise InvalidDeck(index)
        self.deck_index = index - 1
        self.card_index = None

    def select_deck_by_name(self, name: str) -> None:
        try:
            position = self.deck_names.index(name)
        except ValueError:
            raise NoSuchDeck(name) from None
        self.select_deck(position + 1)

    def unselect_deck(self) -> None:
        self.deck_index = None
        self.card_index = None

    def next_deck(self) -> Optional[Card]:
        if not self.decks:
            raise NoDecksAtAll()
        if self.deck_index is None:
            self.deck_index = 0
        elif self.deck_index + 1 >= len(self.decks):
            raise NoFurtherDecks()
        else:
            self.deck_index += 1
        self.card_index = None
        return self.next_card(allow_wrap=False)

    def previous_deck(self) -> Optional[Card]:
        if not self.decks:
            raise NoDecksAtAll()
        if self.deck_index is None:
            self.deck_index = 0
        elif self.deck_index == 0:
            raise AtFirstDeck()
        else:
            self.deck_index -= 1
        self.card_index = None
        return self.next_card(allow_wrap=False)

    def next_card(self, allow_wrap: bool = True) -> Optional[Card]:
        """
        Advance to the next presentable card after the cursor.

        Without a selected deck the walk starts at deck 0. When nothing is
        left and ``allow_wrap`` is set, it starts over once from the
        beginning. Returns None (and clears the card cursor) if no card
        qualifies.
        """
        if not self.decks:
            raise NoDecksAtAll()
        multideck = self.has_flag("multideck")
        if self.deck_index is None:
            start_deck, start_card = 0, None
        else:
            start_deck, start_card = self.deck_index, self.card_index

        found = next(self.iter_cards(start_deck, start_card, multideck), None)
        if found is None and allow_wrap:
            found = next(self.iter_cards(0 if multideck else start_deck, None, multideck), None)
        if found is None:
            self.card_index = None
            return None
        self.deck_index, self.card_index, card = found
        return card

    def previous_card(self) -> Optional[Card]:
        """Step back to the previous presentable card; the cursor stays if there is none."""
        if not self.decks:
            raise NoDecksAtAll()
        if self.deck_index is None:
            start_deck, start_card = 0, None
        else:
            start_deck, start_card = self.deck_index, self.card_index
        found = next(self.iter_cards(start_deck, start_card, reverse=True), None)
        if found is None:
            return None
        self.deck_index, self.card_index, card = found
        return card

    def select_card(self, index: int) -> None:
        """Jump to a card of the selected deck by 1-based index."""
        if self.deck_index is None:
            raise InvalidCardIndex(index)
        if not 0 < index < len(self.decks[self.deck_index]) - 1:
            raise InvalidCardIndex(index)
        self.card_index = index - 1

    def jump_to_card(self, card_id: str) -> Card:
        """Point the cursor at the given card, wherever it is."""
        card = self.collection.get(card_id)
        deck = self.deck_of(card_id)
        if card is None or deck is None:
            raise InvalidDeckOrCard(f"Card not in any deck: {card_id}")
        self.deck_index = deck
        self.card_index = self.decks[deck].index(card_id)
        return card

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------
    def visit(self) -> Card:
        """Record that the current card has been looked at."""
        _, _, card_id = self._current()
        self.lastvisit[card_id] = self.now()
        return self.collection.get(card_id)  # type: ignore[return-value]

    def promote(self) -> Move:
        """Correct recall: move the current card one deck up."""
        deck, index, card_id = self._current()
        self.correct[card_id] = self.correct.get(card_id, 0) + 1
        self.lastvisit[card_id] = self.now()
        target, moved = scheduler.promotion_target(deck, len(self.decks))
        return self._move(deck, index, card_id, target, moved)

    def demote(self) -> Move:
        """Incorrect recall: move the current card one deck down (or to deck 0 with ``returntofirst``)."""
        deck, index, card_id = self._current()
        self.incorrect[card_id] = self.incorrect.get(card_id, 0) + 1
        self.lastvisit[card_id] = self.now()
        target, moved = scheduler.demotion_target(deck, self.has_flag("returntofirst"))
        return self._move(deck, index, card_id, target, moved)

    def _move(self, deck: int, index: int, card_id: str, target: int, moved: bool) -> Move:
        if moved:
            del self.decks[deck][index]
            self.decks[target].append(card_id)
            # the deck stays selected, the next card is looked up from its start
            self.card_index = None
            logger.info("Moved %s from %s to %s", card_id, self.deck_names[deck], self.deck_names[target])
        return Move(card_id, deck, target, moved)
