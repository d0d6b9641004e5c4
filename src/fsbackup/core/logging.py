"""
fsbackup structured logging.

Log events go through structlog onto the stdlib ``logging`` handlers chosen
by ``LoggingConfig``. Each backup, restore and delete run is also kept in a
per-session audit file next to the session report.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from fsbackup.core.config import LoggingConfig


_configured = False


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog once per process."""
    global _configured

    if _configured:
        return

    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, config.level))
        handlers.append(console_handler)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        log_file = config.log_directory / f"fsbackup_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, format="%(message)s")

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if config.json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name or "fsbackup")


class OperationLogger:
    """
    Logs the start and outcome of a backup or restore run.

    An operator interrupt (Ctrl-C or a termination signal) is logged as a
    warning rather than a failure. Context added with ``update`` is carried
    into the closing event.
    """

    def __init__(
        self,
        operation: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger()
        self.context = context
        self.start_time = datetime.now()

    def __enter__(self) -> OperationLogger:
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation}", **self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        duration = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation}", duration_seconds=duration, **self.context
            )
        elif issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            self.logger.warning(
                f"Interrupted {self.operation}", duration_seconds=duration, **self.context
            )
        else:
            self.logger.error(
                f"Failed {self.operation}",
                duration_seconds=duration,
                error_type=exc_type.__name__,
                error=str(exc_val),
                **self.context,
            )

    def update(self, **additional_context: Any) -> None:
        self.context.update(additional_context)


class SessionLogger:
    """Audit trail of one CLI session, mirrored to structlog."""

    def __init__(self, session_file: Path, logger: structlog.stdlib.BoundLogger | None = None):
        self.session_file = session_file
        self.logger = logger or get_logger()
        self.entries: list[dict[str, Any]] = []

    def _append(self, level: str, message: str, details: dict[str, Any]) -> None:
        self.entries.append(
            {"timestamp": datetime.now().isoformat(), "level": level, "message": message, **details}
        )

    def info(self, message: str, **details: Any) -> None:
        self._append("INFO", message, details)
        self.logger.info(message, **details)

    def warning(self, message: str, **details: Any) -> None:
        self._append("WARNING", message, details)
        self.logger.warning(message, **details)

    def error(self, message: str, **details: Any) -> None:
        self._append("ERROR", message, details)
        self.logger.error(message, **details)

    def save(self) -> None:
        levels = [entry["level"] for entry in self.entries]
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(
            json.dumps(
                {
                    "entries": self.entries,
                    "summary": {
                        "total_entries": len(levels),
                        "errors": levels.count("ERROR"),
                        "warnings": levels.count("WARNING"),
                    },
                },
                indent=2,
                default=str,
            )
        )
