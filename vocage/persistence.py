from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .cards import load
from .config import default_data_dir, set_path
from .errors import LoadError, ParseError, SaveError
from .filters import MatchAll, parse
from .session import Session

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def session_to_dict(session: Session) -> Dict[str, Any]:
    """Snapshot of everything a session needs to resume, minus the cards themselves."""
    return {
        "version": FORMAT_VERSION,
        "filename": session.filename,
        "set_filename": session.set_filename,
        "deck_names": list(session.deck_names),
        "decks": [list(deck) for deck in session.decks],
        "correct": dict(session.correct),
        "incorrect": dict(session.incorrect),
        "lastvisit": dict(session.lastvisit),
        "deck_index": session.deck_index,
        "card_index": session.card_index,
        "flags": sorted(session.flags),
        "settings": dict(session.settings),
        "intsettings": dict(session.intsettings),
        "filter": session.filter_query,
    }


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a JSON object")
    return value


def session_from_dict(data: Dict[str, Any], filename: Optional[Union[str, Path]] = None) -> Session:
    """Rebuild a session from a snapshot. The collection is not loaded here."""
    if not isinstance(data, dict):
        raise ValueError("session state must be a JSON object")
    deck_names = [str(n) for n in data.get("deck_names", [])]
    decks = [[str(i) for i in deck] for deck in data.get("decks", [])]
    if len(decks) != len(deck_names):
        raise ValueError("deck names and deck contents have different lengths")

    session = Session(
        filename if filename is not None else data["filename"],
        data["set_filename"],
        deck_names=deck_names,
    )
    session.decks = decks
    session.correct = {str(k): int(v) for k, v in _mapping(data, "correct").items()}
    session.incorrect = {str(k): int(v) for k, v in _mapping(data, "incorrect").items()}
    session.lastvisit = {str(k): int(v) for k, v in _mapping(data, "lastvisit").items()}
    session.deck_index = _optional_int(data.get("deck_index"))
    session.card_index = _optional_int(data.get("card_index"))
    flags = data.get("flags") or []
    if not isinstance(flags, list):
        raise ValueError("flags must be a JSON list")
    session.flags = {str(f) for f in flags}
    session.settings = {str(k): str(v) for k, v in _mapping(data, "settings").items()}
    session.intsettings = {str(k): int(v) for k, v in _mapping(data, "intsettings").items()}

    query = str(data.get("filter") or "")
    try:
        session.filter = parse(query)
    except ParseError as e:
        logger.warning("Stored filter no longer parses, ignoring it: %s", e)
        session.filter = MatchAll()
    return session


def load_session(filename: Union[str, Path], data_dir: Optional[Union[str, Path]] = None) -> Session:
    """
    Resume a session from its file.

    The vocabulary set recorded in the session is always loaded fresh and the
    decks are reconciled against it. Raises LoadError.
    """
    try:
        with open(filename, "r", encoding="utf-8") as f:
            data = json.load(f)
        session = session_from_dict(data, filename)
    except OSError as e:
        raise LoadError(str(filename), f"Unable to read session: {e}") from e
    except (ValueError, KeyError, TypeError) as e:
        raise LoadError(str(filename), f"Malformed session: {e}") from e

    if data_dir is None:
        data_dir = default_data_dir()
    collection = load(set_path(session.set_filename, data_dir))
    session.attach(collection)
    logger.info("Resumed session %s with %d cards", filename, len(collection))
    return session


def save_session(session: Session, filename: Optional[Union[str, Path]] = None) -> Path:
    """Write the session state as JSON, replacing the file in one step. Raises SaveError."""
    path = Path(filename if filename is not None else session.filename)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(session_to_dict(session), f, ensure_ascii=False, indent=1)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise SaveError(str(path), f"Unable to save session: {e}") from e
    logger.info("Saved session to %s", path)
    return path
