"""Cooperative cancellation token."""

import threading


class CancelToken:
    """Thread-safe cancellation flag shared by a build and its bundler calls.

    The step harness checks it between steps; the esbuild runner polls it
    while the bundler subprocess is alive.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; return True once cancelled."""
        return self._event.wait(timeout)
