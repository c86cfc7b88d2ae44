"""Load extraction service config from TOML and the environment.

Sources, later ones overriding earlier ones:
  1. Built-in defaults
  2. The ``[extraction]`` table of a TOML file: the path in the
     TOKSPAN_CONFIG env var if set, else ``tokspan.toml`` in the current
     working directory
  3. Environment variables (TOKSPAN_API_KEY, TOKSPAN_BASE_URL,
     TOKSPAN_MODEL, TOKSPAN_ENTITY_EXTRACTION_MODEL, TOKSPAN_TIMEOUT),
     after loading ``.env`` from the current working directory if present;
     variables already set in the environment win over ``.env``
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://api.deepseek.com/chat/completions"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_TIMEOUT = 120.0

ENV_FIELDS = {
    "TOKSPAN_API_KEY": "api_key",
    "TOKSPAN_BASE_URL": "base_url",
    "TOKSPAN_MODEL": "model",
    "TOKSPAN_ENTITY_EXTRACTION_MODEL": "entity_extraction_model",
    "TOKSPAN_TIMEOUT": "timeout",
}


class ExtractionConfig(BaseModel, frozen=True):
    """Settings for the chat-completion entity extraction service."""

    api_key: str | None = Field(default=None, description="Bearer token for the service.")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Full chat-completions endpoint URL.")
    model: str = Field(default=DEFAULT_MODEL, description="Default model name.")
    entity_extraction_model: str | None = Field(
        default=None,
        description="Model used for entity extraction; falls back to ``model``.",
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="HTTP timeout in seconds.")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    @property
    def extraction_model(self) -> str:
        return self.entity_extraction_model or self.model


def _default_config_paths() -> list[Path]:
    paths: list[Path] = []
    if os.environ.get("TOKSPAN_CONFIG"):
        paths.append(Path(os.environ["TOKSPAN_CONFIG"]))
    paths.append(Path.cwd() / "tokspan.toml")
    return paths


def _read_toml(paths: list[Path]) -> dict[str, Any]:
    for path in paths:
        if path.is_file():
            with open(path, "rb") as f:
                data = tomllib.load(f)
            section = data.get("extraction")
            return dict(section) if isinstance(section, dict) else {}
    return {}


def load_config(path: Path | None = None, use_dotenv: bool = True) -> ExtractionConfig:
    """Build an ExtractionConfig from the TOML file and environment.

    Args:
        path: Explicit TOML file; skips the default lookup when given.
        use_dotenv: Load ``.env`` into the environment first.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range.
        tomllib.TOMLDecodeError: If the TOML file is malformed.
    """
    if use_dotenv:
        load_dotenv(Path.cwd() / ".env", override=False)
    values = _read_toml([path] if path is not None else _default_config_paths())
    for env_name, field in ENV_FIELDS.items():
        if os.environ.get(env_name):
            values[field] = os.environ[env_name]
    return ExtractionConfig(**values)
