"""pagedcache error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Load (cancellation, upstream responses)

Exceptions raised by the upstream request function are never wrapped:
they reach the caller of the triggering operation unchanged.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2003

    # Load (3xxx)
    LOAD_CANCELLED = 3001
    UPSTREAM_INVALID_RESPONSE = 3002


@dataclass(frozen=True, slots=True)
class PagedCacheError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """Code name, e.g. 'LOAD_CANCELLED'."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form, used by the CLI's --json error output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(PagedCacheError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"{field} = {value!r} rejected: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"No config file at {path}",
            details={"path": path},
        )


class LoadCancelledError(PagedCacheError):
    """A pending load was superseded by a later call or an explicit cancel()."""

    @classmethod
    def superseded(cls, operation: str) -> "LoadCancelledError":
        return cls(
            code=ErrorCode.LOAD_CANCELLED,
            message=f"'{operation}' was cancelled before its result was committed",
            retryable=True,
            details={"operation": operation},
        )


class UpstreamResponseError(PagedCacheError):
    """The upstream request function returned something that is not a page."""

    @classmethod
    def invalid(cls, value: Any, reason: str) -> "UpstreamResponseError":
        return cls(
            code=ErrorCode.UPSTREAM_INVALID_RESPONSE,
            message=f"Invalid upstream response: {reason}",
            details={"type": type(value).__name__, "reason": reason},
        )

