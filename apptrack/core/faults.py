"""
Process-level fault logging.

Uncaught exceptions in background tasks, loop callbacks and non-request code
are logged instead of taking the process down, so the API keeps answering
(degraded) while the database is unreachable.
"""

import asyncio
import sys
from types import TracebackType
from typing import Any

from .logging.logger import get_logger

logger = get_logger("apptrack.faults")


def log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """asyncio exception handler: log the fault and keep the loop running."""
    exception = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if exception is not None:
        logger.error(
            f"❌ Unhandled async error: {message}",
            exc_info=(type(exception), exception, exception.__traceback__),
        )
    else:
        logger.error(f"❌ Unhandled async error: {message}")


def log_uncaught_exception(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: TracebackType | None,
) -> None:
    """sys.excepthook replacement that logs instead of printing."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    logger.critical("❌ Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))


def install_fault_handlers(loop: asyncio.AbstractEventLoop | None = None) -> None:
    """
    Install the loop exception handler and sys.excepthook.

    Args:
        loop: Loop to configure; defaults to the running loop
    """
    loop = loop or asyncio.get_running_loop()
    loop.set_exception_handler(log_loop_exception)
    sys.excepthook = log_uncaught_exception
    logger.debug("Process fault handlers installed")
