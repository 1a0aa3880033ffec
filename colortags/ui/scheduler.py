"""
ColorTags - Render Scheduler

Coalesces scroll/content render requests into one debounced render per view.
"""
import asyncio
from contextlib import contextmanager
from typing import Optional, Tuple

from loguru import logger

from colortags.ui.listing import ListingView
from colortags.ui.renderer import ViewportRenderer


class RenderScheduler:
    """
    Single pending-timer debouncer for one listing view.

    The first :meth:`request` starts a ``delay_ms`` timer; later requests
    only widen the pending range. Requests made during a quiet period are
    dropped.
    """

    def __init__(
        self,
        renderer: ViewportRenderer,
        view: ListingView,
        delay_ms: int = 20,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.renderer = renderer
        self.view = view
        self.delay_ms = delay_ms
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._range: Optional[Tuple[int, int]] = None
        self._quiet = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def pending_range(self) -> Optional[Tuple[int, int]]:
        return self._range

    @property
    def is_quiet(self) -> bool:
        return self._quiet > 0 or self.view.is_quiet

    def request(self, start: Optional[int] = None, end: Optional[int] = None) -> bool:
        """
        Ask for a render of ``[start, end)`` (default: visible range).

        Returns:
            True if a new timer was started
        """
        if self.is_quiet:
            return False
        if start is None or end is None:
            start, end = self.view.visible_range()

        if self._handle is not None:
            pending_start, pending_end = self._range
            self._range = (min(pending_start, start), max(pending_end, end))
            return False

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # no loop to debounce on yet (host events during startup)
                logger.debug(f"No running event loop; rendering [{start}, {end}) now")
                self.renderer.apply(self.view, start, end)
                return False

        self._range = (start, end)
        self._handle = loop.call_later(self.delay_ms / 1000.0, self._fire)
        return True

    def _fire(self):
        start, end = self._range
        self._handle = None
        self._range = None
        try:
            self.renderer.apply(self.view, start, end)
        except Exception as e:
            logger.error(f"Debounced render failed for {self.view}: {e}")

    def cancel_pending(self) -> bool:
        """Drop the pending render, if any."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._range = None
        return True

    def fire_now(self) -> bool:
        """Run the pending render immediately."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    @contextmanager
    def quiet(self):
        """Skip scheduling for the duration of a bulk operation."""
        self._quiet += 1
        try:
            yield self
        finally:
            self._quiet -= 1
