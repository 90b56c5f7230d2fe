from __future__ import annotations

from pathlib import Path

import pytest

from message_board.config import load_config


def test_missing_file_returns_defaults(tmp_path: Path):
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["store"]["backend"] == "memory"
    assert cfg["store"]["seed_messages"] == []
    assert cfg["database"]["uri"] is None
    assert "https://*.vercel.app" in cfg["server"]["cors_origins"]


def test_file_values_merge_over_defaults(write_config):
    path = write_config({"database": {"name": "prod"}, "store": {"backend": "mongo"}})
    cfg = load_config(path)
    assert cfg["database"]["name"] == "prod"
    assert cfg["database"]["collection"] == "messages"
    assert cfg["store"]["backend"] == "mongo"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("MESSAGE_BOARD__STORE__BACKEND", "mongo")
    monkeypatch.setenv("MESSAGE_BOARD__DATABASE__CONNECT_TIMEOUT_MS", "2500")
    monkeypatch.setenv("MESSAGE_BOARD__DATABASE__NAME", "2024")
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["store"]["backend"] == "mongo"
    assert cfg["database"]["connect_timeout_ms"] == 2500
    assert cfg["database"]["name"] == "2024"


def test_config_path_from_env(monkeypatch: pytest.MonkeyPatch, write_config):
    monkeypatch.setenv("MESSAGE_BOARD_CONFIG", write_config({"server": {"base_path": "/board"}}))
    assert load_config()["server"]["base_path"] == "/board"


def test_mongodb_uri_fallback(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("MONGODB_URI", "mongodb+srv://u:p@cluster.example.net/?retryWrites=true")
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["database"]["uri"] == "mongodb+srv://u:p@cluster.example.net/?retryWrites=true"


def test_invalid_yaml_raises(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("server: [unclosed", encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(str(path))

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(str(path))


def test_empty_section_keeps_defaults(tmp_path: Path):
    path = tmp_path / "sparse.yaml"
    path.write_text("database:\nstore:\n  backend: mongo\n", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg["database"]["name"] == "message_board"
    assert cfg["store"]["backend"] == "mongo"
