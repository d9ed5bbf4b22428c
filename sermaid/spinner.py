"""Busy indicator shown while a backend call is outstanding."""

import threading

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner as _RichSpinner

TICK_INTERVAL = 0.25  # seconds between frames


class Spinner:
    """Rich spinner animated by a background thread.

    start() launches one daemon thread that refreshes the display every
    ``interval`` seconds until the stop event is set. stop() sets the event,
    waits for the thread to exit and clears the display. Use it as a
    context manager so stop() runs on every exit path.
    """

    def __init__(
        self,
        console: Console,
        message: str = "Waiting for response...",
        interval: float = TICK_INTERVAL,
    ):
        self.interval = interval
        self.ticks = 0
        self._live = Live(
            _RichSpinner("dots", text=message),
            console=console,
            transient=True,
            auto_refresh=False,
        )
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None or self._cancelled.is_set():
            raise RuntimeError("spinner already started")
        self._live.start()
        self._thread = threading.Thread(
            target=self._tick_loop, name="spinner", daemon=True
        )
        self._thread.start()

    def _tick_loop(self) -> None:
        while not self._cancelled.wait(self.interval):
            self.ticks += 1
            self._live.refresh()

    def stop(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._thread is not None:
            try:
                self._thread.join()
            finally:
                self._live.stop()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
