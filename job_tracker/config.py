"""Config loading: packaged YAML defaults, user overrides, env vars."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

_DEFAULT_CONFIG = Path(__file__).parent / "config.default.yaml"


class StoreConfig(BaseModel):
    backend: Literal["json", "memory"] = "json"
    path: Path = Path("~/.local/share/job_tracker/jobs.json")
    seed_samples: bool = False

    def resolved_path(self) -> Path:
        return self.path.expanduser()


class AIConfig(BaseModel):
    url: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 1200
    posting_max_tokens: int = 800
    timeout: int = 60
    api_key_env: str = "OPENAI_API_KEY"

    def api_key(self) -> str:
        """Credential read from the environment at call time ("" when unset)."""
        return os.environ.get(self.api_key_env, "").strip()


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8898


class TrackerConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_config(config_path: Optional[Path] = None) -> TrackerConfig:
    """Load config from YAML, falling back to defaults.

    Precedence: packaged defaults < user YAML (``config_path`` or
    ``$JOB_TRACKER_CONFIG``) < ``$JOB_TRACKER_DB`` / ``$JOB_TRACKER_PORT``.
    """
    with open(_DEFAULT_CONFIG) as f:
        data = yaml.safe_load(f)

    if config_path is None and os.environ.get("JOB_TRACKER_CONFIG"):
        config_path = Path(os.environ["JOB_TRACKER_CONFIG"]).expanduser()

    if config_path and config_path.exists():
        with open(config_path) as f:
            overrides = yaml.safe_load(f) or {}
        _deep_merge(data, overrides)

    if os.environ.get("JOB_TRACKER_DB"):
        data.setdefault("store", {})["path"] = os.environ["JOB_TRACKER_DB"]
    if os.environ.get("JOB_TRACKER_PORT"):
        data.setdefault("server", {})["port"] = int(os.environ["JOB_TRACKER_PORT"])

    return TrackerConfig.model_validate(data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base
