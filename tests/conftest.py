"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest
import yaml

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import FastAPI  # noqa: E402

from message_board.server import create_app  # noqa: E402
from message_board.store import InMemoryMessageStore, MessageStore  # noqa: E402


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with a clean environment (no leftover config vars)."""
    for var in list(os.environ):
        if var.startswith("MESSAGE_BOARD") or var == "MONGODB_URI":
            monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[dict], str]:
    """Write a YAML config into tmp_path and return its path."""
    def _write(data: dict) -> str:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def make_app(tmp_path: Path) -> Callable[..., FastAPI]:
    """Build an app from defaults (no config file) around the given store."""
    def _make(store: Optional[MessageStore] = None, config_path: Optional[str] = None) -> FastAPI:
        path = config_path or str(tmp_path / "missing.yaml")
        return create_app(config_path=path, store=store or InMemoryMessageStore())
    return _make
