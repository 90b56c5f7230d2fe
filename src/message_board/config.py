"""Configuration loading utilities for the message board server.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable MESSAGE_BOARD_CONFIG
3. Fallback to "config/default.yaml"

It also supports optional overrides from environment variables with prefix
``MESSAGE_BOARD__`` (e.g., MESSAGE_BOARD__STORE__BACKEND=mongo). The usual
``MONGODB_URI`` variable fills ``database.uri`` when that key is empty.
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "MESSAGE_BOARD__"
ENV_CONFIG_PATH = "MESSAGE_BOARD_CONFIG"

DEFAULTS: Dict[str, Any] = {
    "server": {
        "base_path": "",
        "cors_origins": [
            "http://localhost:5173",
            "http://localhost:3000",
            "https://*.vercel.app",
        ],
    },
    "store": {"backend": "memory", "seed_messages": []},
    "database": {
        "uri": None,
        "name": "message_board",
        "collection": "messages",
        "connect_timeout_ms": 10000,
        "socket_timeout_ms": 45000,
    },
    "logging": {"level": "INFO"},
}


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        if value is None and isinstance(base.get(key), dict):
            # An empty YAML section keeps the defaults
            continue
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _parse_scalar(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides with prefix MESSAGE_BOARD__."""
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        # e.g., MESSAGE_BOARD__DATABASE__NAME -> cfg["database"]["name"]
        parts = key[len(ENV_PREFIX):].lower().split("__")
        sub = cfg
        for p in parts[:-1]:
            if p not in sub or not isinstance(sub[p], dict):
                sub[p] = {}
            sub = sub[p]
        leaf = parts[-1]
        # Connection strings and names stay verbatim
        sub[leaf] = value if leaf in {"uri", "name", "collection"} else _parse_scalar(value)

    db = cfg.setdefault("database", {})
    if not db.get("uri") and os.environ.get("MONGODB_URI"):
        db["uri"] = os.environ["MONGODB_URI"]
    return cfg


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load YAML configuration for the message board.

    Parameters
    ----------
    path : str | None
        Optional path to a configuration file. If not provided, the
        environment variable ``MESSAGE_BOARD_CONFIG`` is consulted. As a
        last resort ``config/default.yaml`` is used.

    Returns
    -------
    Dict[str, Any]
        Defaults merged with the file contents, environment overrides applied.
    """
    if path is None:
        path = os.environ.get(ENV_CONFIG_PATH, "config/default.yaml")

    cfg = copy.deepcopy(DEFAULTS)
    path_obj = Path(path)
    if not path_obj.exists():
        logger.warning("Config file not found at %s. Using defaults.", path_obj)
        return _apply_env_overrides(cfg)

    with path_obj.open("r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse config file {path_obj}: {e}") from e

    if not isinstance(loaded, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected dict.")

    return _apply_env_overrides(_merge(cfg, loaded))
