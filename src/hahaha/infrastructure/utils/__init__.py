from ._logging import (
    LogLevel,
    LoggerConfig,
    configure_logging,
    log,
    shutdown_logging,
)

__all__ = [
    "LogLevel",
    "LoggerConfig",
    "configure_logging",
    "log",
    "shutdown_logging",
]
