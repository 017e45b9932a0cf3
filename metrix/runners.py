"""Cancellation contexts and helpers that run servers and workers until stopped."""

from __future__ import annotations

import signal
import threading
from dataclasses import dataclass
from typing import Callable, Protocol

from metrix.logger import get_logger

DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class ContextCancelled(Exception):
    """The context was cancelled."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceeded(TimeoutError):
    """The context's deadline passed."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class RunContext:
    """A cancellation signal shared between threads.

    A context is done once it is cancelled, once its timeout passes or once
    its parent is done; it then stays done and remembers why.
    """

    def __init__(
        self, parent: RunContext | None = None, timeout: float | None = None
    ) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: BaseException | None = None
        self._children: set[RunContext] = set()
        self._parent = parent
        self._timer: threading.Timer | None = None
        if timeout is not None:
            if timeout <= 0:
                self._finish(DeadlineExceeded())
            else:
                timer = threading.Timer(timeout, self._finish, args=(DeadlineExceeded(),))
                timer.daemon = True
                self._timer = timer
                timer.start()
        if parent is not None:
            parent._attach(self)

    def __enter__(self) -> RunContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def _attach(self, child: RunContext) -> None:
        with self._lock:
            if self._error is None:
                self._children.add(child)
                return
            error = self._error
        child._finish(error)

    def _detach(self, child: RunContext) -> None:
        with self._lock:
            self._children.discard(child)

    def _finish(self, error: BaseException) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            children = list(self._children)
            self._children.clear()
            timer = self._timer
        self._event.set()
        if timer is not None:
            timer.cancel()
        for child in children:
            child._finish(error)
        if self._parent is not None:
            self._parent._detach(self)

    def cancel(self) -> None:
        """Mark the context and all its descendants as cancelled."""
        self._finish(ContextCancelled())

    def done(self) -> bool:
        """Whether the context is finished."""
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context is done or ``timeout`` passes; True if done."""
        return self._event.wait(timeout)

    def err(self) -> BaseException | None:
        """Why the context finished, or None while it is still running."""
        with self._lock:
            return self._error


class Server(Protocol):
    """Something that serves until it is shut down."""

    def serve_forever(self) -> None:
        """Serve requests until shut down."""

    def shutdown(self) -> None:
        """Stop serving and return once serving has ended."""


def _stop_signals() -> list[signal.Signals]:
    signals = [signal.SIGINT, signal.SIGTERM]
    quit_signal = getattr(signal, "SIGQUIT", None)
    if quit_signal is not None:
        signals.append(quit_signal)
    return signals


def new_run_context(
    parent: RunContext | None = None,
) -> tuple[RunContext, Callable[[], None]]:
    """A context cancelled on SIGINT, SIGTERM or SIGQUIT, and a function to stop it.

    Signal handlers can only be installed from the main thread; elsewhere the
    context is cancelled by the returned function alone. Calling the function
    restores the previous handlers and cancels the context.
    """
    ctx = RunContext(parent)
    previous: dict[int, object] = {}

    def on_signal(signum: int, frame: object) -> None:
        ctx.cancel()

    in_main = threading.current_thread() is threading.main_thread()
    if in_main:
        for sig in _stop_signals():
            previous[sig] = signal.signal(sig, on_signal)

    def stop() -> None:
        if threading.current_thread() is threading.main_thread():
            for sig, handler in previous.items():
                signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
            previous.clear()
        ctx.cancel()

    return ctx, stop


@dataclass
class _Outcome:
    error: BaseException | None = None


def _start(wake: RunContext, target: Callable[..., object], *args: object) -> _Outcome:
    outcome = _Outcome()

    def run() -> None:
        try:
            target(*args)
        except BaseException as exc:
            outcome.error = exc
        finally:
            wake.cancel()

    threading.Thread(target=run, daemon=True).start()
    return outcome


def _shutdown(server: Server) -> None:
    done = RunContext()
    outcome = _start(done, server.shutdown)
    if not done.wait(DEFAULT_SHUTDOWN_TIMEOUT):
        raise DeadlineExceeded()
    if outcome.error is not None:
        raise outcome.error


def run_server(ctx: RunContext, server: Server) -> None:
    """Serve until ``ctx`` is done, then shut the server down.

    Errors from serving or shutting down are logged and raised.
    """
    log = get_logger()
    wake = RunContext(ctx)
    log.info("Starting server")
    outcome = _start(wake, server.serve_forever)
    wake.wait()

    if ctx.done():
        log.info("Context cancelled, initiating shutdown")
        try:
            _shutdown(server)
        except Exception as exc:
            log.error("Server shutdown error", extra={"fields": {"error": str(exc)}})
            raise
        log.info("Server shutdown complete")
        return

    if outcome.error is not None:
        log.error(
            "Server stopped with error", extra={"fields": {"error": str(outcome.error)}}
        )
        raise outcome.error


def run_worker(ctx: RunContext, worker: Callable[[RunContext], object]) -> None:
    """Run ``worker(ctx)`` in the background until it ends or ``ctx`` is done.

    Returns quietly when the context finishes first; an error the worker
    raises before that is logged and raised.
    """
    log = get_logger()
    wake = RunContext(ctx)
    log.info("Starting worker")
    outcome = _start(wake, worker, ctx)
    wake.wait()

    if ctx.done():
        log.info("Worker stopped successfully")
        return

    if outcome.error is not None:
        log.error(
            "Worker stopped with error", extra={"fields": {"error": str(outcome.error)}}
        )
        raise outcome.error