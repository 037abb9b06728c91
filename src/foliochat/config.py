"""Configuration loading: defaults < foliochat.toml < environment (.env) < CLI flags."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import FoliochatConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "foliochat.toml"

# environment variable -> config field
_ENV_FIELDS = {
    "FOLIOCHAT_GITHUB_USER": "github_user",
    "GITHUB_TOKEN": "github_token",
    "FOLIOCHAT_OWNER_NAME": "owner_name",
    "FOLIOCHAT_ASSISTANT_NAME": "assistant_name",
    "FOLIOCHAT_PROFILE": "profile_path",
    "FOLIOCHAT_MODEL": "model",
    "FOLIOCHAT_ENDPOINT": "endpoint",
    "FOLIOCHAT_REFERRER": "referrer",
    "FOLIOCHAT_MAX_REPOS": "max_repos",
    "FOLIOCHAT_REQUEST_TIMEOUT": "request_timeout",
}


def _nearest(start_dir: Path, name: str) -> Path | None:
    search = start_dir.resolve()
    for d in [search, *search.parents]:
        candidate = d / name
        if candidate.is_file():
            return candidate
    return None


def parse_dotenv(text: str) -> dict[str, str]:
    """``KEY=VALUE`` pairs of a .env document.

    Blank lines, ``#`` comments and lines without ``=`` are skipped; an
    ``export`` prefix and one pair of matching quotes are removed.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.removeprefix("export ").strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        if key:
            values[key] = value
    return values


def read_dotenv(start_dir: Path) -> dict[str, str]:
    """Variables from the nearest ``.env`` in *start_dir* or its parents."""
    path = _nearest(start_dir, ".env")
    if path is None:
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return {}
    values = parse_dotenv(text)
    logger.debug("Read %d variables from %s", len(values), path)
    return values


def effective_environ(start_dir: Path) -> dict[str, str]:
    """Process environment layered over the nearest ``.env`` file."""
    return {**read_dotenv(start_dir), **os.environ}


def find_config_file(start_dir: Path) -> Path | None:
    """Nearest ``foliochat.toml`` in *start_dir* or its parents."""
    return _nearest(start_dir, CONFIG_FILENAME)


def load_config(
    path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> FoliochatConfig:
    """Build the effective configuration.

    *overrides* holds CLI flags; ``None`` values are ignored so that only
    flags the user actually passed win. *environ* defaults to the process
    environment; the CLI passes :func:`effective_environ` so ``.env``
    values count as environment.

    Raises:
        ValueError: if the TOML file is unreadable or a value is invalid.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        try:
            with path.open("rb") as fh:
                data.update(tomllib.load(fh))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ValueError(f"Cannot read {path}: {exc}") from exc

    for var, field_name in _ENV_FIELDS.items():
        value = env.get(var, "").strip()
        if value:
            data[field_name] = value

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = FoliochatConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    problems = config.validate_values()
    if problems:
        raise ValueError("Invalid configuration: " + "; ".join(problems))
    return config
