"""Structured logging for pagedcache.

Events go through structlog into stdlib logging handlers, one handler per
configured output, each with its own level and renderer (console or JSON).

While a load is in flight every event logged from its task carries
``load_id`` and ``operation``, including events logged by the upstream
request function. See ``load_context``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from pagedcache.config.models import LoggingConfig, LogOutputConfig


@dataclass(frozen=True, slots=True)
class LoadContext:
    """Identifies one network-touching operation in the logs."""

    load_id: str
    operation: str


_current_load: ContextVar[LoadContext | None] = ContextVar("current_load", default=None)


def current_load() -> LoadContext | None:
    return _current_load.get()


@contextmanager
def load_context(operation: str, load_id: str | None = None) -> Iterator[LoadContext]:
    """Tag events logged inside the block with a load id and operation name.

    Tasks started inside the block copy the tag, so a superseded load that
    settles later still logs under its own id.
    """
    ctx = LoadContext(load_id=load_id or uuid4().hex[:12], operation=operation)
    token = _current_load.set(ctx)
    try:
        yield ctx
    finally:
        _current_load.reset(token)


def _add_load_context(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    ctx = _current_load.get()
    if ctx is not None:
        event_dict.setdefault("load_id", ctx.load_id)
        event_dict.setdefault("operation", ctx.operation)
    return event_dict


def _level(name: str) -> int:
    return logging.getLevelNamesMapping()[name.upper()]


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog through stdlib logging.

    Pass *config* for multiple outputs. Without it a single stderr output
    is built from *json_format* and *level*. Calling this again closes and
    replaces the previous handlers.
    """
    from pagedcache.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_load_context,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(root_level)
    for output in config.outputs:
        root.addHandler(_build_handler(output, pre_chain, output.level or config.level))


def _build_handler(
    output: LogOutputConfig,
    pre_chain: list[structlog.types.Processor],
    level: str,
) -> logging.Handler:
    handler: logging.Handler
    if output.destination in ("stderr", "stdout"):
        stream = sys.stderr if output.destination == "stderr" else sys.stdout
        handler = logging.StreamHandler(stream)
        colors = stream.isatty()
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        colors = False

    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    handler.setLevel(_level(level))
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger that renders *name* under the ``logger`` key.

    Safe at module level: processors are resolved on first use, so later
    configure_logging() calls still apply.
    """
    if not name:
        return structlog.get_logger()  # type: ignore[no-any-return]
    return structlog.get_logger(name, logger=name)  # type: ignore[no-any-return]
