"""Structured logging via structlog for processes that host the router.

The library itself logs through stdlib `logging.getLogger(__name__)`.
A host (MCP server, CLI, HTTP service) calls `configure_logging()` once at
startup, which reads `PRODUCTRULES_DEBUG`, or `configure_structlog(debug)`
directly. Stdlib records are then rendered by the same pipeline.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for local development.
  debug=False: `JSONRenderer` for machine-parseable logs.

ContextVar injection:
  `bind_project_root()` stores the project being analysed so every log
  line emitted while a detection or rule lookup runs carries it.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

from productrules.core.config import Settings, get_settings

_project_root_var: ContextVar[str] = ContextVar("project_root", default="")


def get_project_root() -> str:
    """Return the project root bound to the current context, or ''."""
    return _project_root_var.get()


def bind_project_root(project_root: str) -> None:
    _project_root_var.set(project_root)


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject project_root from its ContextVar."""
    project_root = get_project_root()
    if project_root:
        event_dict["project_root"] = project_root
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog and the stdlib bridge.

    Calling multiple times is safe; the last call wins.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        # stderr keeps stdout free for stdio transports
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    package_logger = logging.getLogger("productrules")
    package_logger.handlers = [handler]
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    package_logger.propagate = False


def configure_logging(settings: Settings | None = None) -> None:
    """Host startup hook: configure logging from PRODUCTRULES_DEBUG."""
    settings = settings or get_settings()
    configure_structlog(debug=settings.debug)
