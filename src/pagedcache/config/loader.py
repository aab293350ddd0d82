"""Configuration loading.

Layers, lowest to highest precedence:

1. Built-in defaults (models.py)
2. Global YAML (~/.config/pagedcache/config.yaml)
3. Config YAML (./pagedcache.yaml, or the path passed to load_config)
4. Environment variables (PAGEDCACHE__SECTION__KEY)
5. Keyword arguments to load_config()

The YAML layers are merged as plain mappings. Env vars and kwargs are
collected by ``PagedCacheSettings``, and only the keys they actually set
are laid over the YAML before the result is validated once.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagedcache.config.constants import CONFIG_FILE_NAME, ENV_PREFIX
from pagedcache.config.models import CacheConfig, LoggingConfig, PagedCacheConfig
from pagedcache.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/pagedcache/config.yaml").expanduser()


class PagedCacheSettings(BaseSettings):
    """Env var and kwarg overrides, e.g. PAGEDCACHE__CACHE__PAGE_SIZE=50."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    cache: CacheConfig = CacheConfig()


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML layer. A missing file is an empty layer."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(below, value)
        else:
            merged[key] = value
    return merged


def _invalid(e: ValidationError) -> ConfigError:
    first = e.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return ConfigError.invalid_value(field, first.get("input"), first["msg"])


def load_config(path: Path | None = None, **kwargs: Any) -> PagedCacheConfig:
    """Resolve the configuration from every layer.

    Args:
        path: Config file to read instead of ./pagedcache.yaml. Unlike the
              default file it must exist.
        **kwargs: Section overrides, e.g. ``cache={"page_size": 50}``.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML, or a value
            that fails validation in any layer.
    """
    if path is not None and not path.exists():
        raise ConfigError.file_not_found(str(path))

    layered = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(path or Path.cwd() / CONFIG_FILE_NAME),
    )
    try:
        overrides = PagedCacheSettings(**kwargs).model_dump(exclude_unset=True)
        return PagedCacheConfig.model_validate(_deep_merge(layered, overrides))
    except ValidationError as e:
        raise _invalid(e) from e
