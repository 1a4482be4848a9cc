"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.viacep/`` on macOS and Windows.  See :func:`get_config_dir`.
* **Config file** -- A single :class:`~viacep.models.ClientConfig` JSON
  file.  See :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_config` merges explicit
  overrides, ``VIACEP_*`` environment variables, the config file, and
  defaults into the effective configuration.

Nothing here is global: the resolved :class:`~viacep.models.ClientConfig`
is handed to each client explicitly, so several independently configured
clients can coexist.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from viacep.exceptions import ConfigError
from viacep.models import ClientConfig

_APP_NAME = "viacep"
_CONFIG_FILENAME = "config.json"

# env var -> (section, field); section None means top level
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "VIACEP_BASE_URL": (None, "base_url"),
    "VIACEP_TIMEOUT": ("request", "timeout"),
    "VIACEP_MAX_RETRIES": ("request", "max_retries"),
    "VIACEP_CACHE_ENABLED": ("cache", "enabled"),
    "VIACEP_CACHE_BACKEND": ("cache", "backend"),
    "VIACEP_CACHE_TTL": ("cache", "ttl_seconds"),
    "VIACEP_REDIS_URL": ("cache", "redis_url"),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/viacep/`` (default ``~/.config/viacep/``).
    On macOS/Windows: ``~/.viacep/``.

    The directory is not created; :func:`save_config` creates it on write.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def default_config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace the config file in one step so readers never see a partial write."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


# --- Config file ---


def load_config(path: Optional[Path] = None) -> ClientConfig:
    """Load the configuration file.

    Args:
        path: Explicit file path.  Defaults to :func:`default_config_path`.

    Returns:
        The deserialised :class:`~viacep.models.ClientConfig`.  If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = Path(path) if path is not None else default_config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written."""
    path = Path(path) if path is not None else default_config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    """Collect ``VIACEP_*`` environment variables into a nested override dict."""
    overrides: dict[str, Any] = {}
    for var, (section, field) in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value is None or value == "":
            continue
        if section is None:
            overrides[field] = value
        else:
            overrides.setdefault(section, {})[field] = value
    return overrides


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config(
    path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> ClientConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. Explicit *overrides* (nested dict, e.g. ``{"cache": {"enabled": False}}``)
        2. Environment variables (``VIACEP_BASE_URL``, ``VIACEP_CACHE_TTL``, ...)
        3. Config file (``~/.config/viacep/config.json`` or *path*)
        4. Defaults

    Raises:
        ConfigError: If any layer holds a value that fails validation.
    """
    data = load_config(path).model_dump(mode="json")
    data = _merge(data, _env_overrides())
    if overrides:
        data = _merge(data, overrides)
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
