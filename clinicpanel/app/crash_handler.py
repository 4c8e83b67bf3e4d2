from __future__ import annotations

import asyncio
import logging
import sys
import threading
from types import TracebackType
from typing import Any, Callable

_FATAL_KEY = "is_fatal_crash"


def install_global_exception_hook(logger: logging.LoggerAdapter) -> None:
    def _handle_exception(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            if sys.__excepthook__:
                sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            "unhandled_exception",
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={_FATAL_KEY: True},
        )

    sys.excepthook = _handle_exception

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        _handle_exception(args.exc_type, args.exc_value, args.exc_traceback)

    threading.excepthook = _thread_hook  # type: ignore[assignment]


def install_asyncio_exception_handler(loop: asyncio.AbstractEventLoop, logger: logging.LoggerAdapter) -> None:
    """Las excepciones de tareas sin await no llegan a sys.excepthook."""

    def _handler(_loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        if exc is None:
            logger.error("asyncio_error message=%s", context.get("message", "-"))
            return
        logger.critical(
            "unhandled_task_exception",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={_FATAL_KEY: True},
        )

    loop.set_exception_handler(_handler)


def fatal_exception_handler(logger: logging.LoggerAdapter) -> Callable[[type[BaseException], BaseException, TracebackType | None], None]:
    def _handler(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None) -> None:
        logger.critical(
            "unhandled_exception",
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={_FATAL_KEY: True},
        )

    return _handler
