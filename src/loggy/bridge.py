"""Wires process-level events into a logger."""

from __future__ import annotations

import asyncio
import atexit
import logging
import sys
import threading
import warnings as pywarnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

if TYPE_CHECKING:
    from .logger import Loggy


logger = logging.getLogger(__name__)

# False disables a source, True enables it, a mapping enables it with extra fields
SourceOption = Union[bool, Mapping[str, Any]]


def _extra(option: SourceOption) -> dict[str, Any]:
    return {} if option is True else dict(option)


@dataclass
class GlobalEventBridge:
    """
    Routes uncaught exceptions, unhandled asyncio errors, warnings and
    interpreter exit into ``Loggy.log``.

    Each source is installed at most once; previous hooks are chained so the
    host's own reporting still happens.
    """
    target: Loggy

    # Internal state
    _installed: dict[str, Callable[[], None]] = field(default_factory=dict, init=False)
    _saw_exception: bool = field(default=False, init=False)

    def install(
        self,
        exceptions: SourceOption = True,
        rejections: SourceOption = True,
        warnings: SourceOption = True,
        exits: SourceOption = True,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if exceptions and "exceptions" not in self._installed:
            self._installed["exceptions"] = self._install_exceptions(_extra(exceptions))
        if rejections and "rejections" not in self._installed:
            restore = self._install_rejections(_extra(rejections), loop)
            if restore is not None:
                self._installed["rejections"] = restore
        if warnings and "warnings" not in self._installed:
            self._installed["warnings"] = self._install_warnings(_extra(warnings))
        if exits and "exits" not in self._installed:
            self._installed["exits"] = self._install_exits(_extra(exits))

        logger.debug(f"Global event sources installed: {sorted(self._installed)}")

    def uninstall(self) -> None:
        """Restore every hook this bridge replaced."""
        for restore in self._installed.values():
            restore()
        self._installed.clear()

    @property
    def installed(self) -> frozenset[str]:
        return frozenset(self._installed)

    @property
    def exit_code(self) -> int:
        """Best known exit status of the process."""
        if self.target.exit_code is not None:
            return self.target.exit_code
        return 1 if self._saw_exception else 0

    def _report_uncaught(self, exc_type, exc, extra: dict[str, Any]) -> None:
        self._saw_exception = True
        if exc is None:
            exc = exc_type()
        try:
            self.target.log(exc, {"level": "fatal", **extra}, True)
        except SystemExit:
            # The interpreter is already exiting with status 1
            pass

    def _install_exceptions(self, extra: dict[str, Any]) -> Callable[[], None]:
        previous = sys.excepthook
        previous_thread = threading.excepthook

        def excepthook(exc_type, exc, tb):
            previous(exc_type, exc, tb)
            self._report_uncaught(exc_type, exc, extra)

        def thread_excepthook(args):
            previous_thread(args)
            # SystemExit only ends its thread
            if args.exc_type is SystemExit:
                return
            thread = {"thread": args.thread.name} if args.thread is not None else {}
            self._report_uncaught(args.exc_type, args.exc_value, {**thread, **extra})

        sys.excepthook = excepthook
        threading.excepthook = thread_excepthook

        def restore() -> None:
            sys.excepthook = previous
            threading.excepthook = previous_thread

        return restore

    def _install_rejections(
        self,
        extra: dict[str, Any],
        loop: asyncio.AbstractEventLoop | None,
    ) -> Callable[[], None] | None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop, unhandled task errors are not bridged")
                return None

        previous = loop.get_exception_handler()

        def exception_handler(loop, context):
            reason = context.get("exception") or context.get("message")
            self.target.log(reason, {"level": "error", **extra}, True)
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)

        loop.set_exception_handler(exception_handler)

        def restore() -> None:
            loop.set_exception_handler(previous)

        return restore

    def _install_warnings(self, extra: dict[str, Any]) -> Callable[[], None]:
        previous = pywarnings.showwarning

        def showwarning(message, category, filename, lineno, file=None, line=None):
            self.target.log(message, {"level": "warn", "file": filename, "line": lineno, **extra})
            previous(message, category, filename, lineno, file, line)

        pywarnings.showwarning = showwarning

        def restore() -> None:
            pywarnings.showwarning = previous

        return restore

    def _install_exits(self, extra: dict[str, Any]) -> Callable[[], None]:
        def on_exit() -> None:
            code = self.exit_code
            self.target.log(
                f"Application stops with exit code {code}",
                {"level": "info", "code": code, **extra},
                True,
            )

        atexit.register(on_exit)

        def restore() -> None:
            atexit.unregister(on_exit)

        return restore
