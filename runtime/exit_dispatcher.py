"""
Process exit handler stack.

Handlers are callables receiving the exit code. They run last-registered
first, exactly once, whatever the exit path: a normal return or
``SystemExit`` inside ``guard()``, an uncaught exception, ``KeyboardInterrupt``,
``SIGTERM``, or interpreter shutdown via ``atexit``.
"""
from __future__ import annotations

import atexit
import logging
import signal
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from core.lifecycle import ExitCode

__all__ = ['ExitDispatcher', 'ExitHandler', 'exit_code_for', 'make_autosave_handler']
logger = logging.getLogger(__name__)

ExitHandler = Callable[[int], Any]


def exit_code_for(exc: Optional[BaseException]) -> int:
    """Map an in-flight exception (or None for normal completion) to a process status."""
    if exc is None:
        return int(ExitCode.OK)
    if isinstance(exc, SystemExit):
        code = exc.code
        if code is None:
            return int(ExitCode.OK)
        if isinstance(code, int):
            return code
        # sys.exit('message') prints the message and exits 1
        return int(ExitCode.FAILURE)
    if isinstance(exc, KeyboardInterrupt):
        return int(ExitCode.INTERRUPTED)
    return int(ExitCode.FAILURE)


class ExitDispatcher:
    """
    LIFO exit handler dispatcher.

    States are uninstalled and installed; ``install`` moves to installed once
    and later calls are no-ops. ``dispatch`` runs at most once per dispatcher.
    The process hooks are injectable so tests never touch the real
    interpreter hooks.
    """

    def __init__(
        self,
        register: Callable[[Callable[[], Any]], Any] = atexit.register,
        install_signals: bool = True,
    ):
        self._register = register
        self._install_signals = install_signals
        self._handlers: List[ExitHandler] = []
        self._installed = False
        self._dispatched = False
        self._recorded_code: Optional[int] = None
        self._previous_excepthook: Optional[Callable[..., Any]] = None

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def dispatched(self) -> bool:
        return self._dispatched

    @property
    def handlers(self) -> List[ExitHandler]:
        return list(self._handlers)

    def install(self) -> bool:
        """Register the process hooks. Returns False when already installed."""
        if self._installed:
            logger.debug('Exit dispatcher already installed')
            return False
        self._register(self._at_exit)
        if self._install_signals:
            self._previous_excepthook = sys.excepthook
            sys.excepthook = self._excepthook
            try:
                signal.signal(signal.SIGTERM, self._on_sigterm)
            except ValueError:
                # only the main thread may install signal handlers
                logger.debug('SIGTERM handler not installed (not in main thread)')
        self._installed = True
        logger.debug('Exit dispatcher installed')
        return True

    def add(self, handler: ExitHandler) -> None:
        if not callable(handler):
            raise TypeError(f'Exit handler must be callable, got {type(handler).__name__}')
        self._handlers.append(handler)
        logger.debug(f'Exit handler added: {getattr(handler, "__name__", repr(handler))}')

    def record(self, code: int) -> None:
        """Remember the code the atexit fallback should report."""
        if self._recorded_code is None:
            self._recorded_code = int(code)

    def dispatch(self, code: int) -> int:
        """Run every handler in reverse order once; returns ``code`` unchanged."""
        captured = int(code)
        if self._dispatched:
            return captured
        self._dispatched = True
        logger.debug(f'Dispatching {len(self._handlers)} exit handler(s) for exit code {captured}')
        for handler in reversed(self._handlers):
            name = getattr(handler, '__name__', repr(handler))
            try:
                handler(captured)
            except BaseException as exc:
                # a handler's SystemExit or KeyboardInterrupt must not replace the captured code
                logger.warning(f"Exit handler '{name}' failed: {type(exc).__name__}: {exc}")
        return captured

    @contextmanager
    def guard(self) -> Iterator['ExitDispatcher']:
        """Run the block, dispatch with its exit code, then let its outcome propagate."""
        try:
            yield self
        except BaseException as exc:
            self.dispatch(exit_code_for(exc))
            raise
        else:
            self.dispatch(int(ExitCode.OK))

    def _at_exit(self) -> None:
        self.dispatch(self._recorded_code if self._recorded_code is not None else int(ExitCode.OK))

    def _excepthook(self, exc_type, exc_value, exc_tb) -> None:
        self.record(exit_code_for(exc_value))
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc_value, exc_tb)

    def _on_sigterm(self, signum, frame) -> None:
        self.record(int(ExitCode.TERMINATED))
        raise SystemExit(int(ExitCode.TERMINATED))


def make_autosave_handler(state) -> ExitHandler:
    """Exit handler that saves state only after a clean (exit code 0) run."""

    def autosave(exit_code: int) -> None:
        if exit_code != ExitCode.OK:
            logger.debug(f'State not saved: exit code {exit_code}')
            return
        state.save()

    return autosave


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
