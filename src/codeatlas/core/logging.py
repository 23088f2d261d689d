"""structlog setup routed through stdlib logging handlers.

Each entry of ``LoggingConfig.outputs`` becomes one root handler with its own
level and renderer, so a terse console stream and a JSON file of every
``file_indexed`` event can run side by side. Console handlers go quiet while
a progress bar is drawing; file handlers never do. Values bound with
``structlog.contextvars`` (the scan id during a scan) land on every event.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from codeatlas.config.models import LoggingConfig, LogOutputConfig

_CONSOLE_DESTINATIONS = ("stderr", "stdout")

# Libraries whose INFO chatter would drown out scan events
_NOISY_LOGGERS = ("sqlalchemy.engine", "pygit2")


class ConsoleSuppressingFilter(logging.Filter):
    """Drops records while ``suppress_console_logs()`` is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from codeatlas.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _level_number(name: str | None, fallback: int = logging.INFO) -> int:
    if not name:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def _open_handler(destination: str) -> logging.Handler:
    if destination in _CONSOLE_DESTINATIONS:
        # Looked up per call so redirected streams are honored
        handler: logging.Handler = logging.StreamHandler(getattr(sys, destination))
        handler.addFilter(ConsoleSuppressingFilter())
        return handler
    log_path = Path(destination)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_path, mode="a", encoding="utf-8")


def _formatter_for(
    output: LogOutputConfig, pre_chain: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        colored = output.destination in _CONSOLE_DESTINATIONS and sys.stderr.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colored, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install root handlers for ``config``, replacing any from an earlier call.

    Without a config a single stderr handler is installed at ``level``,
    rendering JSON when ``json_format`` is set. The CLI uses that form before
    the repository config has been read.
    """
    from codeatlas.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        fmt = "json" if json_format else "console"
        config = LoggingConfig(level=level.upper(), outputs=[LogOutputConfig(format=fmt)])

    root_level = _level_number(config.level)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguring mid-process must reach loggers created at import time
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for stale in root.handlers[:]:
        root.removeHandler(stale)
        stale.close()
    root.setLevel(root_level)
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _open_handler(output.destination)
        handler.setLevel(_level_number(output.level, root_level))
        handler.setFormatter(_formatter_for(output, pre_chain))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """A structlog logger, tagged with ``logger=name`` when a name is given."""
    log = structlog.get_logger()
    return log.bind(logger=name) if name else log  # type: ignore[no-any-return]
