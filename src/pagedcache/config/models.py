"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (PAGEDCACHE__SECTION__KEY)
3. Config YAML (./pagedcache.yaml, or an explicit path)
4. Global YAML (~/.config/pagedcache/config.yaml)
5. Built-in defaults (this file)

Examples:
    PAGEDCACHE__LOGGING__LEVEL=DEBUG
    PAGEDCACHE__CACHE__PAGE_SIZE=50
    PAGEDCACHE__CACHE__FETCH_LIMIT=500
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagedcache.config.constants import (
    DEFAULT_FETCH_LIMIT,
    DEFAULT_PAGE_SIZE,
    FETCH_LIMIT_MAX,
    MAX_WINDOW_INDEX,
    PAGE_SIZE_MAX,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        PAGEDCACHE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every upstream request.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CacheConfig(BaseModel):
    """Window and load sizing for a DataSource.

    Immutable: an engine and all of its clones share one instance.

    Env vars:
        PAGEDCACHE__CACHE__PAGE_SIZE: Window length
        PAGEDCACHE__CACHE__FETCH_LIMIT: Bulk request size
        PAGEDCACHE__CACHE__BUFFER: Soft cap on retained items
        PAGEDCACHE__CACHE__MAX_WINDOW_INDEX: Upper clamp for next(index)
    """

    model_config = ConfigDict(frozen=True)

    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        description="Items per window served to the UI.",
    )
    fetch_limit: int = Field(
        default=DEFAULT_FETCH_LIMIT,
        description="Upstream request size for fetch() and for filtered loads. "
        "TRADEOFF: Larger values fill filtered windows in fewer round trips.",
    )
    buffer: int | None = Field(
        default=None,
        description="Soft cap on items retained by fetch(). Advisory: the page "
        "that crosses it is kept whole. None means unbounded.",
    )
    max_window_index: int = Field(
        default=MAX_WINDOW_INDEX,
        description="next(index) is clamped to [0, max_window_index].",
    )

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if not (1 <= v <= PAGE_SIZE_MAX):
            raise ValueError(f"page_size must be 1-{PAGE_SIZE_MAX}, got {v}")
        return v

    @field_validator("fetch_limit")
    @classmethod
    def validate_fetch_limit(cls, v: int) -> int:
        if not (1 <= v <= FETCH_LIMIT_MAX):
            raise ValueError(f"fetch_limit must be 1-{FETCH_LIMIT_MAX}, got {v}")
        return v

    @field_validator("buffer")
    @classmethod
    def validate_buffer(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"buffer must be positive, got {v}")
        return v

    @field_validator("max_window_index")
    @classmethod
    def validate_max_window_index(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_window_index must be >= 0, got {v}")
        return v


class PagedCacheConfig(BaseModel):
    """Root configuration for pagedcache.

    All settings can be configured via:
    1. Environment variables: PAGEDCACHE__SECTION__KEY
    2. YAML config files (local or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
