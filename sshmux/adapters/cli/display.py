"""
Live per-host output view
"""
import queue
import threading
import time
from typing import List, Optional

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.text import Text

from ...core.constants import (
    DEFAULT_TAIL_LINES,
    HOST_LABEL_STYLE,
    RENDER_INTERVAL,
    STATUS_FAILED_STYLE,
    STATUS_OK_STYLE,
)
from ...core.logging import get_stdout_console
from ...domain.dispatch import Job

_STOP = object()


class LiveDisplay:
    """
    Renders the tail of every job's output on a single thread.

    Workers only push change signals; the renderer drains whatever is queued,
    redraws once and sleeps for the render interval, so bursts of output cost
    one redraw. Usage:

        display = LiveDisplay(jobs, console)
        display.start()
        dispatcher.dispatch(jobs)
        display.stop()
    """

    def __init__(
        self,
        jobs: List[Job],
        console: Optional[Console] = None,
        tail: int = DEFAULT_TAIL_LINES,
        interval: float = RENDER_INTERVAL,
    ):
        self.jobs = jobs
        self.console = console or get_stdout_console()
        self.tail = tail
        self.interval = interval
        self._signals: "queue.Queue[object]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

        for job in jobs:
            job.on_change = self.signal

    def signal(self) -> None:
        """Note that some job changed"""
        self._signals.put(None)

    def start(self) -> None:
        """Start the rendering thread"""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name="sshmux-render", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Draw the final state and wait for the rendering thread"""
        if self._thread is None:
            return
        self._signals.put(_STOP)
        self._thread.join()
        self._thread = None

    def _drain(self) -> bool:
        """Wait for a signal, then swallow the rest of the burst. True on stop."""
        stop = self._signals.get() is _STOP
        while True:
            try:
                stop = self._signals.get_nowait() is _STOP or stop
            except queue.Empty:
                return stop

    def _loop(self) -> None:
        with Live(
            self.render(),
            console=self.console,
            auto_refresh=False,
            vertical_overflow="visible",
        ) as live:
            while True:
                stop = self._drain()
                live.update(self.render(), refresh=True)
                if stop:
                    break
                time.sleep(self.interval)

    # ============================================================
    # Rendering
    # ============================================================

    def render(self) -> RenderableType:
        """Build the whole view from the current job states"""
        return Group(*(self.render_job(job) for job in self.jobs))

    def render_job(self, job: Job) -> RenderableType:
        """Host label followed by the output tail and, on failure, the error"""
        status = STATUS_FAILED_STYLE if job.failed else STATUS_OK_STYLE
        parts: List[RenderableType] = [Text(job.host, style=f"{HOST_LABEL_STYLE} {status}")]

        for line in job.tail(self.tail):
            parts.append(Text.from_ansi(line))

        if job.failed:
            parts.append(Text(str(job.error), style=STATUS_FAILED_STYLE))

        parts.append(Text(""))
        return Group(*parts)
