"""
excusemaster/config.py
Settings persisted to excusemaster_config.json.
Loaded once by the entry point and passed explicitly to the adapter
and API; nothing reads settings from ambient state.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from excusemaster.models.record import DEFAULT_MODEL, DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "excusemaster_config.json"
API_KEY_ENV     = "XAI_API_KEY"

DEFAULT_CONFIG = {
    "api_key": "",
    "model": DEFAULT_MODEL,
    "temperature": DEFAULT_TEMPERATURE,
    "base_url": "https://api.x.ai/v1",
    "history_path": "excuse_history.json",
}


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from excusemaster_config.json. Returns defaults if missing."""
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return {**DEFAULT_CONFIG, **data}
            logger.warning(f"Config at {path} is not an object — using defaults")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to excusemaster_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return path


def ensure_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load config and fill a blank api_key from $XAI_API_KEY.
    """
    config = load_config(project_root)
    if not str(config.get("api_key") or "").strip():
        env_key = os.environ.get(API_KEY_ENV, "").strip()
        if env_key:
            config["api_key"] = env_key
            logger.info(f"Using API key from ${API_KEY_ENV}")
    return config


def redact_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of config safe to display: the key is reduced to its last 4 chars."""
    shown = dict(config)
    key = str(shown.get("api_key") or "")
    shown["api_key"] = f"…{key[-4:]}" if len(key) > 4 else ("set" if key else "")
    return shown
