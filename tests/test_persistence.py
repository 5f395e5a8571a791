import json
from pathlib import Path

import pytest

from vocage.errors import LoadError, SaveError
from vocage.filters import MatchAll
from vocage.persistence import load_session, save_session, session_to_dict
from vocage.session import Session


def test_save_and_load_round_trip(session: Session, tmp_path: Path) -> None:
    card = session.next_card()
    session.promote()
    session.jump_to_card(card.id)
    session.set_flag("returntofirst")
    session.set_setting("flashcards.front", "word")
    session.set_interval(1, 24)
    session.set_filter("any(#noun,#verb)")

    path = save_session(session)
    assert path == Path(session.filename)
    assert not path.with_name(path.name + ".tmp").exists()

    loaded = load_session(path, tmp_path)
    assert loaded.filename == str(path)
    assert loaded.set_filename == session.set_filename
    assert loaded.deck_names == session.deck_names
    assert loaded.decks == session.decks
    assert loaded.correct == {card.id: 1}
    assert loaded.lastvisit == session.lastvisit
    assert (loaded.deck_index, loaded.card_index) == (1, 0)
    assert loaded.current_card() == card
    assert loaded.flags == {"returntofirst"}
    assert loaded.settings == {"flashcards.front": "word"}
    assert loaded.intsettings == {"due.1": 24}
    assert loaded.filter_query == "any(#noun,#verb)"


def test_cards_are_not_serialized(session: Session) -> None:
    data = session_to_dict(session)
    assert "collection" not in data
    assert "cards" not in data
    assert json.loads(json.dumps(data)) == data


def test_loading_reconciles_against_changed_set(session: Session, set_file: Path, tmp_path: Path) -> None:
    chat = session.collection.find_by_word("chat")
    session.jump_to_card(chat.id)
    session.promote()
    path = save_session(session)

    # chat disappears from the set, a new word shows up
    records = json.loads(set_file.read_text(encoding="utf-8"))
    records = [r for r in records if r["words"] != ["chat"]]
    records.append({"words": ["oiseau"], "translations": ["bird"]})
    set_file.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")

    loaded = load_session(path, tmp_path)
    assert chat.id not in loaded.correct
    assert loaded.decks[1] == []
    assert loaded.collection.find_by_word("oiseau").id == loaded.decks[0][-1]
    assert sorted(i for deck in loaded.decks for i in deck) == sorted(loaded.collection.ids())


def test_set_is_found_in_data_dir(session: Session, set_file: Path, tmp_path: Path) -> None:
    session.set_filename = set_file.name
    path = save_session(session)
    loaded = load_session(path, set_file.parent)
    assert len(loaded.collection) == 5


def test_broken_filter_falls_back_to_everything(session: Session, tmp_path: Path) -> None:
    path = save_session(session)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["filter"] = "any(#a"
    path.write_text(json.dumps(data), encoding="utf-8")
    loaded = load_session(path, tmp_path)
    assert isinstance(loaded.filter, MatchAll)


@pytest.mark.parametrize("content", [
    "{broken",
    "[]",
    json.dumps({"deck_names": ["a"], "decks": []}),
    json.dumps({"filename": "x", "deck_names": [], "decks": []}),
])
def test_malformed_session(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(LoadError):
        load_session(path, tmp_path)


@pytest.mark.parametrize("key, value", [
    ("correct", [1, 2]),
    ("lastvisit", "yesterday"),
    ("settings", "x"),
    ("intsettings", 3),
    ("flags", "multideck"),
])
def test_session_with_wrongly_typed_values(session: Session, tmp_path: Path, key: str, value: object) -> None:
    path = save_session(session)
    data = json.loads(path.read_text(encoding="utf-8"))
    data[key] = value
    path.write_text(json.dumps(data), encoding="utf-8")
    with pytest.raises(LoadError):
        load_session(path, tmp_path)


def test_missing_session_file(tmp_path: Path) -> None:
    with pytest.raises(LoadError):
        load_session(tmp_path / "nope.json", tmp_path)


def test_missing_set_file(session: Session, tmp_path: Path) -> None:
    session.set_filename = str(tmp_path / "gone.json")
    path = save_session(session)
    with pytest.raises(LoadError):
        load_session(path, tmp_path)


def test_save_error(session: Session, tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(SaveError):
        save_session(session, blocker / "session.json")


def test_session_save_shortcut(session: Session) -> None:
    path = session.save()
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["set_filename"] == session.set_filename
