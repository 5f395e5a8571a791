from pathlib import Path

import pytest

from vocage import config


def test_default_dirs_follow_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VOCAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("VOCAGE_SESSION_DIR", str(tmp_path / "sessions"))
    assert config.default_data_dir() == tmp_path / "data"
    assert config.default_session_dir() == tmp_path / "sessions"


def test_default_dirs_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VOCAGE_DATA_DIR", raising=False)
    monkeypatch.delenv("VOCAGE_SESSION_DIR", raising=False)
    assert config.default_data_dir() == Path("~/.config/vocage/data").expanduser()
    assert config.default_session_dir().name == "sessions"


def test_listing(tmp_path: Path) -> None:
    data = tmp_path / "data"
    sessions = tmp_path / "sessions"
    config.ensure_dirs(data, sessions)
    for name in ("b.yaml", "a.json", "c.tsv", "notes.txt"):
        (data / name).write_text("", encoding="utf-8")
    (sessions / "a.json").write_text("{}", encoding="utf-8")
    (sessions / "a.json.tmp").write_text("{}", encoding="utf-8")
    assert config.list_sets(data) == ["a.json", "b.yaml", "c.tsv"]
    assert config.list_sessions(sessions) == ["a.json"]
    assert config.list_sets(tmp_path / "missing") == []


def test_session_path(tmp_path: Path) -> None:
    assert config.session_path("french", tmp_path) == tmp_path / "french.json"
    assert config.session_path("french.json", tmp_path) == tmp_path / "french.json"
    assert config.session_path("other/french", tmp_path) == Path("other/french.json")


def test_set_path(tmp_path: Path) -> None:
    (tmp_path / "words.yaml").write_text("", encoding="utf-8")
    assert config.set_path("words.yaml", tmp_path) == tmp_path / "words.yaml"
    assert config.set_path("unknown.yaml", tmp_path) == Path("unknown.yaml")
