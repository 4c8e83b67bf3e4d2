from __future__ import annotations

import asyncio
import contextvars
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

from PySide6.QtCore import QObject, Signal

from clinicpanel.app.bootstrap_logging import get_logger, log_soft_exception
from clinicpanel.app.crash_handler import install_asyncio_exception_handler

LOGGER = get_logger(__name__)


class AsyncRunner(QObject):
    """Bucle asyncio en un hilo propio para la capa de red.

    Controladores y lookups solo se tocan desde este hilo; la UI les manda
    trabajo con ``submit``/``call`` y recibe los resultados por señales Qt
    (conexión en cola hacia el hilo de la GUI).
    """

    failed = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ready = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def start(self) -> None:
        if self._thread is not None:
            return
        # El hilo hereda run_id/user del contexto de logging actual.
        contexto = contextvars.copy_context()
        self._thread = threading.Thread(target=contexto.run, args=(self._run,), name="clinicpanel-asyncio", daemon=True)
        self._thread.start()
        self._ready.wait()

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        install_asyncio_exception_handler(loop, LOGGER)
        self._loop = loop
        self._ready.set()
        LOGGER.info("async_runner_started")
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()
            LOGGER.info("async_runner_stopped")

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        future = asyncio.run_coroutine_threadsafe(coro, self._require_loop())
        future.add_done_callback(self._report_failure)
        return future

    def call(self, fn: Callable[..., Any], *args: Any) -> None:
        def _safe() -> None:
            try:
                fn(*args)
            except Exception as exc:  # noqa: BLE001
                self._emit_failure(exc)

        self._require_loop().call_soon_threadsafe(_safe)

    def stop(self, cleanup: Optional[Coroutine[Any, Any, Any]] = None, *, timeout: float = 5.0) -> None:
        if self._loop is None or self._thread is None:
            return
        if cleanup is not None:
            asyncio.run_coroutine_threadsafe(cleanup, self._loop).result(timeout=timeout)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        self._thread = None
        self._loop = None

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("AsyncRunner no iniciado")
        return self._loop

    def _report_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._emit_failure(exc)

    def _emit_failure(self, exc: BaseException) -> None:
        if isinstance(exc, Exception):
            log_soft_exception(LOGGER, exc, {"origen": "async_runner"})
        self.failed.emit(exc)
