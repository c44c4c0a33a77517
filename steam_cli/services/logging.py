"""structlog setup for the Steam library CLI.

Command output owns stdout, so every diagnostic goes to stderr and,
optionally, to a rotating JSON log file.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FILE_NAME = "steam-library.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Libraries that log each request at INFO.
CHATTY_LOGGERS = ("httpx", "httpcore")


def _event_processors() -> list[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


class LoggingService:
    """Owns the root logger's handlers and the structlog pipeline.

    ``ENVIRONMENT=development`` (the default) renders console-style lines;
    any other value, or a log directory, switches the renderer to JSON.
    """

    def __init__(
        self,
        log_level: str = "WARNING",
        log_dir: Path | None = None,
        console: bool = True,
    ) -> None:
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.console = console
        self.is_development = os.getenv("ENVIRONMENT", "development") == "development"

    @property
    def level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.WARNING

    def configure(self) -> None:
        self._install_handlers()
        structlog.configure(
            processors=[*_event_processors(), self._renderer()],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _renderer(self) -> Any:
        if self.is_development and self.log_dir is None:
            return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        return structlog.processors.JSONRenderer()

    def _install_handlers(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(self.level)

        handlers: list[logging.Handler] = []
        if self.console:
            handlers.append(logging.StreamHandler(sys.stderr))
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                self.log_dir / LOG_FILE_NAME,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            ))

        # structlog has already rendered the event by the time a handler sees it
        plain = logging.Formatter("%(message)s")
        for handler in handlers:
            handler.setLevel(self.level)
            handler.setFormatter(plain)
            root.addHandler(handler)

        for name in CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(self.level, logging.WARNING))

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        return structlog.stdlib.get_logger(name)


def setup_logging(
    log_level: str = "WARNING",
    log_dir: Path | None = None,
    environment: str | None = None,
    console: bool = True,
) -> LoggingService:
    """Configure logging for the process and return the service.

    Args:
        log_level: Minimum level name, case-insensitive
        log_dir: Directory for ``steam-library.log``; None disables the file
        environment: Overrides ``ENVIRONMENT`` (development/production)
        console: False silences the stderr handler
    """
    if environment:
        os.environ["ENVIRONMENT"] = environment

    service = LoggingService(log_level=log_level, log_dir=log_dir, console=console)
    service.configure()
    return service
