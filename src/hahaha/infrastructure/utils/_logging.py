"""
Asynchronous log sink for the `hahaha` logger hierarchy.

Library modules log through `logging.getLogger(__name__)` and never configure
handlers themselves. Applications that want output call `configure_logging`,
which attaches a `QueueHandler` to the `hahaha` logger and starts a
`QueueListener` thread that formats and writes records to the console and/or a
file. Emitting a record therefore only enqueues it.

`log(level, message)` is the fire-and-forget entry point: it returns None and
never raises into the caller.
"""

from __future__ import annotations

import logging
import queue
import sys
from dataclasses import dataclass
from enum import Enum
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional, Union

ROOT_LOGGER_NAME = "hahaha"


class LogLevel(Enum):
    """
    Severity levels, mapped onto stdlib logging levels.

    TRACE and FATAL are registered as extra level names below DEBUG and above
    CRITICAL respectively.
    """

    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    FATAL = logging.CRITICAL + 5


logging.addLevelName(LogLevel.TRACE.value, "TRACE")
logging.addLevelName(LogLevel.FATAL.value, "FATAL")

_COLORS = {
    LogLevel.TRACE.value: "\033[37m",
    LogLevel.DEBUG.value: "\033[36m",
    LogLevel.INFO.value: "\033[32m",
    LogLevel.WARN.value: "\033[33m",
    LogLevel.ERROR.value: "\033[31m",
    logging.CRITICAL: "\033[35m",
    LogLevel.FATAL.value: "\033[1;31m",
}
_RESET = "\033[0m"


@dataclass
class LoggerConfig:
    """
    Sink configuration.

    Attributes
    ----------
    level : LogLevel
        Minimum level forwarded by the `hahaha` logger.
    file : str
        Path of the log file used when `write_to_file` is set.
    write_to_file : bool
        Append records to `file`.
    write_to_console : bool
        Write records to stderr.
    time_enabled : bool
        Prefix each record with a timestamp.
    colored : bool
        Colorize the level name on the console.
    """

    level: LogLevel = LogLevel.INFO
    file: str = "log.txt"
    write_to_file: bool = False
    write_to_console: bool = True
    time_enabled: bool = False
    colored: bool = True


class _LevelFormatter(logging.Formatter):
    def __init__(self, *, time_enabled: bool, colored: bool) -> None:
        fmt = "[%(levelname)s] %(name)s: %(message)s"
        if time_enabled:
            fmt = "%(asctime)s " + fmt
        super().__init__(fmt)
        self._colored = colored

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self._colored:
            return text
        color = _COLORS.get(record.levelno)
        if color is None:
            return text
        return f"{color}{text}{_RESET}"


_listener: Optional[QueueListener] = None
_queue_handler: Optional[QueueHandler] = None
_sink_handlers: List[logging.Handler] = []


def configure_logging(config: Optional[LoggerConfig] = None) -> QueueListener:
    """
    Install the asynchronous sink on the `hahaha` logger.

    Calling this again replaces the previous sink.

    Parameters
    ----------
    config : LoggerConfig, optional
        Sink configuration; defaults to `LoggerConfig()`.

    Returns
    -------
    QueueListener
        The started listener.
    """
    global _listener, _queue_handler, _sink_handlers

    cfg = config if config is not None else LoggerConfig()
    shutdown_logging()

    handlers: List[logging.Handler] = []
    if cfg.write_to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(
            _LevelFormatter(time_enabled=cfg.time_enabled, colored=cfg.colored)
        )
        handlers.append(console)
    if cfg.write_to_file:
        file_handler = logging.FileHandler(cfg.file, encoding="utf-8")
        file_handler.setFormatter(
            _LevelFormatter(time_enabled=cfg.time_enabled, colored=False)
        )
        handlers.append(file_handler)

    q: queue.SimpleQueue = queue.SimpleQueue()
    queue_handler = QueueHandler(q)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(cfg.level.value)
    logger.addHandler(queue_handler)
    logger.propagate = False

    listener = QueueListener(q, *handlers)
    listener.start()

    _listener = listener
    _queue_handler = queue_handler
    _sink_handlers = handlers
    return listener


def shutdown_logging() -> None:
    """
    Stop the sink, flushing queued records, and restore propagation.
    No-op when no sink is installed.
    """
    global _listener, _queue_handler, _sink_handlers

    if _listener is not None:
        _listener.stop()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _queue_handler is not None:
        logger.removeHandler(_queue_handler)
        logger.propagate = True
    for h in _sink_handlers:
        h.close()

    _listener = None
    _queue_handler = None
    _sink_handlers = []


def _coerce_level(level: Union[LogLevel, int, str]) -> int:
    if isinstance(level, LogLevel):
        return level.value
    if isinstance(level, str):
        member = LogLevel.__members__.get(level.upper())
        return member.value if member is not None else logging.INFO
    if isinstance(level, int):
        return level
    return logging.INFO


def log(level: Union[LogLevel, int, str], message: str) -> None:
    """
    Emit `message` on the `hahaha` logger at `level`.

    Unknown levels are logged at INFO. Handler failures are reported by the
    logging module itself and never propagate to the caller.
    """
    logging.getLogger(ROOT_LOGGER_NAME).log(_coerce_level(level), "%s", message)
