"""Centralised application configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/mdtexpreview/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Template paths must stay within this character set; anything else is
# dropped rather than handed to Pandoc.
TEMPLATE_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9_\-/\\:\s.()]+$")

DEFAULT_PANDOC_PATH = "pandoc"
DEFAULT_HIGHLIGHT_STYLE = "tango"
DEFAULT_MATH_ENGINE = "mathml"


def _split_template_setting(raw: str) -> list[str]:
    stripped = raw.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            logger.warning("Template setting is not a valid JSON list: %r", raw)
            return []
        if isinstance(parsed, list):
            return [str(entry) for entry in parsed]
    return raw.split(",")


def normalise_templates(
    raw: str | list[str] | tuple[str, ...] | None,
) -> list[str] | None:
    """Parse a template setting into a list of normalised paths.

    Accepts a comma-separated string, a JSON list or a sequence.  Entries
    are trimmed, blank entries removed, entries outside
    ``TEMPLATE_PATH_PATTERN`` dropped (with a warning) and the rest
    normalised.

    Returns:
        The template paths, or ``None`` when nothing usable remains
        (Pandoc's default template).
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        entries = _split_template_setting(raw)
    else:
        entries = list(raw)

    templates: list[str] = []
    for entry in entries:
        candidate = str(entry).strip()
        if not candidate:
            continue
        if not TEMPLATE_PATH_PATTERN.match(candidate):
            logger.warning(
                "Dropping template path with invalid characters: %r", candidate
            )
            continue
        templates.append(os.path.normpath(candidate))

    return templates or None


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class PreviewConfig(BaseModel):
    """Pandoc conversion and incremental preview options."""

    pandoc_path: str = DEFAULT_PANDOC_PATH
    latex_template: str = ""
    html_template: str = ""
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE
    math_engine: str = DEFAULT_MATH_ENGINE
    incremental_compile: bool = True
    debounce_seconds: float = 0.5

    @property
    def latex_templates(self) -> list[str] | None:
        """Validated stage-1 template paths, or ``None`` for the default."""
        return normalise_templates(self.latex_template)

    @property
    def html_templates(self) -> list[str] | None:
        """Validated stage-2 template paths, or ``None`` for the default."""
        return normalise_templates(self.html_template)

    @field_validator("latex_template", "html_template", mode="before")
    @classmethod
    def _normalise_template_setting(cls, value: Any) -> str:
        """Drop invalid template paths once, when the setting is loaded.

        The stored value is the comma-joined list of valid paths, so later
        reads parse clean input and log nothing.
        """
        if value is None:
            return ""
        raw = list(value) if isinstance(value, list | tuple) else str(value)
        return ",".join(normalise_templates(raw) or ())

    @field_validator("pandoc_path", mode="before")
    @classmethod
    def _default_pandoc_path(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_PANDOC_PATH
        path = str(value).strip()
        if path == DEFAULT_PANDOC_PATH:
            return path
        return os.path.normpath(path)

    @field_validator("highlight_style", mode="before")
    @classmethod
    def _default_highlight_style(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_HIGHLIGHT_STYLE
        return str(value).strip()

    @field_validator("math_engine", mode="before")
    @classmethod
    def _default_math_engine(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_MATH_ENGINE
        return str(value).strip()

    @field_validator("debounce_seconds")
    @classmethod
    def _non_negative_debounce(cls, value: float) -> float:
        if value < 0:
            msg = "PREVIEW__DEBOUNCE_SECONDS must not be negative"
            raise ValueError(msg)
        return value


class AppConfig(BaseModel):
    """Application runtime configuration."""

    host: str = "127.0.0.1"
    port: int = 8080
    storage_secret: SecretStr = SecretStr("dev-secret-change-me")
    log_dir: Path = Path("logs")
    reload: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``PREVIEW__PANDOC_PATH``, ``PREVIEW__LATEX_TEMPLATE``, ``APP__PORT``, etc.
    Template lists may be given as a comma-separated string.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    preview: PreviewConfig = PreviewConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
