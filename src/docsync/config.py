from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from docsync.errors import ConfigInvalid

DEFAULT_BASE_URL = "https://dash.readme.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_FILE_KEYS = ("base_url", "key", "version", "timeout_seconds")


@dataclass(frozen=True)
class Settings:
    base_url: str
    api_key: str
    version: str | None
    timeout_seconds: float


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file; only the known keys are returned."""
    if not path.is_file():
        raise ConfigInvalid(f"config file not found: {path}")
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"config file is not valid YAML: {path}: {e}") from e
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigInvalid(f"config file must be a YAML mapping: {path}")
    return {k: doc[k] for k in _FILE_KEYS if k in doc}


def _parse_timeout(raw: Any) -> float:
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigInvalid(f"timeout_seconds must be a number, got {raw!r}") from e
    return max(1.0, timeout)


def load_settings(
    *,
    key: str | None = None,
    version: str | None = None,
    base_url: str | None = None,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings: CLI values > DOCSYNC_* env vars > YAML config file > defaults."""
    env = os.environ if env is None else env

    file_path = config_path
    if file_path is None and _clean(env.get("DOCSYNC_CONFIG")):
        file_path = Path(str(env["DOCSYNC_CONFIG"]).strip())
    file_cfg = load_config_file(file_path) if file_path is not None else {}

    api_key = _clean(key) or _clean(env.get("DOCSYNC_API_KEY")) or _clean(file_cfg.get("key"))
    if not api_key:
        raise ConfigInvalid("No project API key provided. Please use `--key` or set DOCSYNC_API_KEY.")

    resolved_version = _clean(version) or _clean(env.get("DOCSYNC_VERSION")) or _clean(file_cfg.get("version"))
    resolved_base = (
        _clean(base_url) or _clean(env.get("DOCSYNC_BASE_URL")) or _clean(file_cfg.get("base_url")) or DEFAULT_BASE_URL
    )

    raw_timeout = _clean(env.get("DOCSYNC_TIMEOUT_SECONDS")) or file_cfg.get("timeout_seconds")
    timeout = _parse_timeout(raw_timeout) if raw_timeout is not None else DEFAULT_TIMEOUT_SECONDS

    return Settings(
        base_url=resolved_base.rstrip("/"),
        api_key=api_key,
        version=resolved_version,
        timeout_seconds=timeout,
    )


def configure_logging(level: str | None = None) -> None:
    name = _clean(level) or _clean(os.getenv("DOCSYNC_LOG_LEVEL")) or DEFAULT_LOG_LEVEL
    logging.basicConfig(
        level=getattr(logging, name.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
