"""Thread-safe, batched progress reporting for renders.

Progress is purely observational: the renderer pushes pixel counts into a
:class:`ProgressCounter` and nothing in the rendering path ever reads it.
Updates go through a single lock and the callback only fires once at least
``report_every`` new pixels have accumulated (and once on completion), so
the counter is cheap to update from many workers.

Example:
    >>> from tqdm import tqdm
    >>> from src.sdfmarch.core.progress import ProgressCounter, tqdm_callback
    >>> bar = tqdm(total=640 * 480, unit="px")
    >>> counter = ProgressCounter(640 * 480, report_every=1024, callback=tqdm_callback(bar))
    >>> counter.advance(640)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

# Callback receives (pixels_done, total_pixels)
ProgressCallback = Callable[[int, int], None]


class ProgressCounter:
    """A lock-protected pixel counter with batched callbacks.

    Attributes:
        total: Number of pixels in the render.
        report_every: Minimum number of new pixels between callbacks.
    """

    def __init__(
        self,
        total: int,
        report_every: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize the counter.

        Args:
            total: Number of pixels in the render (non-negative).
            report_every: Minimum pixels between callbacks (positive).
            callback: Optional function receiving (done, total).

        Raises:
            ValueError: If total is negative or report_every is not positive.
        """
        if total < 0:
            raise ValueError(f"total must be non-negative, got {total}")
        if report_every <= 0:
            raise ValueError(f"report_every must be positive, got {report_every}")

        self.total = total
        self.report_every = report_every
        self._callback = callback
        self._lock = threading.Lock()
        self._done = 0
        self._reported = 0

    @property
    def done(self) -> int:
        """Pixels counted so far."""
        with self._lock:
            return self._done

    @property
    def finished(self) -> bool:
        return self.done >= self.total

    def advance(self, n: int = 1) -> None:
        """Count n more finished pixels.

        Never counts past total. Fires the callback when at least
        report_every pixels have accumulated since the last report, or when
        the total is reached.
        """
        if n < 0:
            raise ValueError(f"Cannot advance by a negative count: {n}")

        with self._lock:
            self._done = min(self._done + n, self.total)
            due = self._done - self._reported >= self.report_every
            complete = self._done == self.total and self._reported < self.total
            if due or complete:
                self._reported = self._done
                # Called under the lock so reports arrive in order
                if self._callback is not None:
                    self._callback(self._done, self.total)

    def __repr__(self) -> str:
        return f"ProgressCounter(done={self.done}, total={self.total})"


def tqdm_callback(bar: Any) -> ProgressCallback:
    """Adapt a tqdm bar to a ProgressCallback.

    The bar is moved to the reported absolute position.
    """

    def _update(done: int, total: int) -> None:
        bar.update(done - bar.n)

    return _update
