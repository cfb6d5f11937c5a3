"""
Dispatch domain models
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ..options import EffectiveOptions


class JobState(str, Enum):
    """Lifecycle of one host's job"""
    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    ESTABLISHED = "established"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass(eq=False)
class Job:
    """
    One host's unit of work and its accumulated result.

    Output is append-only. Appends and tail reads are serialized by a
    per-job lock, so the renderer can read while a worker writes.

    Attributes:
        host: Target host as given by the user
        options: Effective connection options, None if resolution failed
        state: Current lifecycle state
        error: Terminal error, None on success
        on_change: Called after every state change or output append
    """
    host: str
    options: Optional[EffectiveOptions] = None
    state: JobState = JobState.IDLE
    error: Optional[Exception] = None
    on_change: Optional[Callable[[], None]] = None
    _lines: List[str] = field(default_factory=list, init=False, repr=False)
    _partial: str = field(default="", init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def done(self) -> bool:
        return self.state in (JobState.CLOSED, JobState.FAILED)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def set_state(self, state: JobState) -> None:
        """Move to a new lifecycle state"""
        self.state = state
        self._notify()

    def fail(self, error: Exception) -> None:
        """Record the terminal error"""
        self.error = error
        self.state = JobState.FAILED
        self._notify()

    def write(self, text: str) -> None:
        """
        Append output text.

        Complete lines are appended as they arrive; a trailing fragment is
        kept until its newline shows up or flush() is called.
        """
        if not text:
            return
        with self._lock:
            parts = (self._partial + text).split("\n")
            self._partial = parts.pop()
            self._lines.extend(p.rstrip("\r") for p in parts)
        self._notify()

    def flush(self) -> None:
        """Turn a pending fragment into a line"""
        with self._lock:
            if not self._partial:
                return
            self._lines.append(self._partial.rstrip("\r"))
            self._partial = ""
        self._notify()

    @property
    def lines(self) -> List[str]:
        """Snapshot of complete output lines"""
        with self._lock:
            return list(self._lines)

    def tail(self, count: int) -> List[str]:
        """Last count lines, a pending fragment included"""
        with self._lock:
            lines = (self._lines + [self._partial]) if self._partial else self._lines
            return list(lines[-count:]) if count > 0 else []
