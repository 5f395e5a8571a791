from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"

SET_EXTENSIONS = (".json", ".yaml", ".yml", ".tsv")
SESSION_EXTENSION = ".json"

DEFAULT_DECK_NAMES = ["new", "short", "medium", "long", "done"]

_BASE_DIR = Path("~/.config/vocage")


def default_data_dir() -> Path:
    """Directory holding vocabulary sets (``VOCAGE_DATA_DIR`` overrides)."""
    return Path(os.environ.get("VOCAGE_DATA_DIR", str(_BASE_DIR / "data"))).expanduser()


def default_session_dir() -> Path:
    """Directory holding saved sessions (``VOCAGE_SESSION_DIR`` overrides)."""
    return Path(os.environ.get("VOCAGE_SESSION_DIR", str(_BASE_DIR / "sessions"))).expanduser()


def ensure_dirs(*dirs: Union[str, Path]) -> None:
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)


def _list_dir(directory: Union[str, Path], extensions: tuple) -> List[str]:
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        p.name for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )


def list_sets(data_dir: Union[str, Path]) -> List[str]:
    """Names of the vocabulary sets found in ``data_dir``."""
    return _list_dir(data_dir, SET_EXTENSIONS)


def list_sessions(session_dir: Union[str, Path]) -> List[str]:
    """Names of the saved sessions found in ``session_dir``."""
    return _list_dir(session_dir, (SESSION_EXTENSION,))


def session_path(name: str, session_dir: Union[str, Path]) -> Path:
    """Resolve a session name to a file path.

    A bare name goes into ``session_dir`` and gets a ``.json`` suffix, anything
    with a directory component is taken as given.
    """
    path = Path(name).expanduser()
    if path.parent == Path("."):
        path = Path(session_dir) / path
    if path.suffix.lower() != SESSION_EXTENSION:
        path = path.with_name(path.name + SESSION_EXTENSION)
    return path


def set_path(name: str, data_dir: Optional[Union[str, Path]] = None) -> Path:
    """Resolve a vocabulary set name, looking in ``data_dir`` if it isn't found as is."""
    path = Path(name).expanduser()
    if path.exists() or data_dir is None:
        return path
    candidate = Path(data_dir) / path
    if candidate.exists():
        return candidate
    return path


def setup_logging(debug: Optional[bool] = None) -> None:
    if debug is None:
        debug = DEBUG_MODE
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
