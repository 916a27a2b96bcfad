"""structlog setup and per-walk log context for feedwalker.

Every page fetch runs in its own asyncio task (see
:class:`~feedwalker.paging.future.PageFuture`).  At the start of that task
the walker or timeline calls :func:`bind_walk_context`, so each record
logged while serving the fetch, retry warnings included, carries the
owner's ``walk_id`` and the ``collection`` it is walking.  The binding lives
in the task's copy of the context and is discarded with the task; the
caller's context is never modified.

Applications call :func:`configure_logging` once at startup.  Library code
keeps using ``logging.getLogger(__name__)`` with %-style messages; the
records are rendered by structlog.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import IO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

walk_id_var: ContextVar[str | None] = ContextVar("walk_id", default=None)
"""ID of the traversal the current task is serving, or ``None``."""

_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_SECRET_MARKERS: tuple[str, ...] = (
    "api_key",
    "authorization",
    "bearer",
    "consumer_key",
    "consumer_secret",
    "oauth",
    "password",
    "secret",
    "token",
)
_REDACTED = "[REDACTED]"


def new_walk_id() -> str:
    """Return a short random ID identifying one traversal."""
    return uuid.uuid4().hex[:12]


def bind_walk_context(walk_id: str, collection: str, **extra: object) -> None:
    """Tag records logged from the current context with a walk's identity.

    Call only from inside the task serving a fetch.  ``walk_id_var`` is set
    as well so records from plain stdlib loggers carry the ID even when
    structlog's context merging is not configured.
    """
    walk_id_var.set(walk_id)
    structlog.contextvars.bind_contextvars(walk_id=walk_id, collection=collection, **extra)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _is_secret(key: object) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask credentials at the top level and inside dict values (e.g. ``headers``)."""
    for key, value in event_dict.items():
        if _is_secret(key):
            event_dict[key] = _REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {k: _REDACTED if _is_secret(k) else v for k, v in value.items()}
    return event_dict


def _inject_walk_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    walk_id = walk_id_var.get()
    if walk_id is not None:
        event_dict.setdefault("walk_id", walk_id)
    return event_dict


def _build_pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _inject_walk_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str | None = None, *, stream: IO[str] | None = None) -> None:
    """Route stdlib and structlog records through one structlog renderer.

    Records are newline-delimited JSON, or coloured console output at
    DEBUG.  Each record has ``timestamp``, ``level``, ``logger`` and
    ``event``; records emitted while serving a fetch also have ``walk_id``
    and ``collection``.  Calling it again replaces the root handler.

    Args:
        log_level: Level name, case-insensitive.  ``None`` reads
            ``Settings.log_level``.
        stream: Where records are written.  Defaults to ``sys.stdout``.
    """
    if log_level is None:
        from feedwalker.config.settings import get_settings  # noqa: PLC0415

        log_level = get_settings().log_level
    level_name = log_level.upper()
    console = level_name == "DEBUG"

    pre_chain = _build_pre_chain()
    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if console
        else structlog.processors.JSONRenderer()
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if console else logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
