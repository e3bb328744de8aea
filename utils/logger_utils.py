"""Namespaced logging setup shared by every analysis component.

All module loggers live below a single namespace (``ChatAnalysis`` by default) so that the host
application can attach, silence or redirect the whole analysis layer with one logger.
"""

from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import ClassVar, Final, Literal, NamedTuple, Self, TextIO

__all__: list[str] = ["LogLevel", "LoggerUtils"]

type LevelType = Literal[
    "NOTSET",
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

_LOG_FILE_SIZE: Final[int] = 2 * 1024 * 1024  # 2MB
_LOG_BACKUP_COUNT: Final[int] = 2
_CONSOLE_FORMAT: Final[str] = "%(levelname)s: %(message)s"
_FILE_FORMAT: Final[str] = (
    "%(asctime)s %(levelname)-8s %(process)5d %(thread)5d %(lineno)4d %(name)-42s\t%(funcName)s\t%(message)s"
)

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "ChatAnalysis"


class LogLevel(NamedTuple):
    """Logging level as both name and numeric value.

    Attributes:
        name (str): Level name such as 'INFO'.
        value (int): Numeric level.
    """

    name: str
    value: int


class LoggerUtils:
    """Singleton that configures the namespace logger once per process.

    Console output is limited to WARNING and above. When a log file is given, a rotating file
    handler records everything from DEBUG upwards.

    Attributes:
        _LOGGER_NAMESPACE (str): Namespace prepended to every logger name.
        _configured (bool): Whether handlers have already been attached.
        _instance (LoggerUtils | None): The singleton instance.
    """

    _LOGGER_NAMESPACE: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path = "", *, use_null_console: bool = False) -> None:
        """Attach handlers to the namespace logger.

        Repeated construction returns the already configured singleton untouched.

        Args:
            filename (str | Path): Log file path. Empty disables file logging.
            use_null_console (bool): Attach a NullHandler instead of a stderr handler.
        """
        if LoggerUtils._configured:
            return

        self.root_logger: logging.Logger = logging.getLogger(self._LOGGER_NAMESPACE)
        # Handlers filter on their own levels, the logger must let everything through to them.
        self.root_logger.setLevel(DEFAULT_LOG_LEVEL)

        if use_null_console or sys.stderr is None:
            self._attach(NullHandler())
        else:
            console_handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(Formatter(_CONSOLE_FORMAT))
            self._attach(console_handler)

        log_path: str = str(filename).strip()
        if log_path:
            self._file_logging(Path(log_path))

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    def _attach(self, handler: logging.Handler) -> None:
        if any(type(h) is type(handler) for h in self.root_logger.handlers):
            self.root_logger.warning("%s is already attached.", type(handler).__name__)
            return
        self.root_logger.addHandler(handler)

    def _file_logging(self, path: Path) -> None:
        """Attach a UTF-8 rotating file handler.

        Args:
            path (Path): Log file path. Missing parent directories are created.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=path,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as err:
            self.root_logger.error("Cannot open log file '%s': %s. File logging is disabled.", path, err)
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(Formatter(_FILE_FORMAT))
        self._attach(file_handler)

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Route ``warnings.warn`` output into the namespace logger.

        Signature matches ``warnings.showwarning``.
        """
        _ = file, line
        self.root_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    def set_level(self, level: LevelType) -> None:
        """Set the namespace logger level, falling back to INFO for unknown names.

        Args:
            level (LevelType): Level name.
        """
        level_map: dict[str, int] = logging.getLevelNamesMapping()
        try:
            self.root_logger.setLevel(level_map[level.upper()])
        except KeyError:
            self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.root_logger.warning("Unknown logging level '%s'. Logging level set to 'INFO'.", level)

    def get_level(self) -> LogLevel:
        """Return the effective level of the namespace logger."""
        level_value: int = self.root_logger.getEffectiveLevel()
        return LogLevel(name=logging.getLevelName(level_value), value=level_value)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return a logger below the configured namespace.

        Args:
            name (str | None): Module name, usually ``__name__``. None returns the namespace logger.

        Returns:
            logging.Logger: The logger instance.
        """
        namespace: str = LoggerUtils._LOGGER_NAMESPACE
        if not namespace:
            return logging.getLogger(name or None)
        return logging.getLogger(f"{namespace}.{name}" if name else namespace)
