"""Auto-save scheduling for stores backed by a remote node."""

import logging
import threading
from collections.abc import Callable


class AutoSavePolicy:
    """Decides when a store mutation turns into a save.

    ``delay_ms`` selects the regime:

    - negative: disabled, mutations never save on their own
    - zero: every trigger saves immediately, on the calling thread
    - positive: debounced, each trigger restarts a single timer and only the
      last trigger of a burst saves once the delay has elapsed

    The save callable reads the store when it runs, so a debounced save
    always carries every mutation made before the timer fired.

    Args:
        save: Performs the save. Exceptions are logged, never raised.
        delay_ms: Auto-save delay in milliseconds
        timer_factory: Builds the debounce timer, ``threading.Timer`` by default
        logger: Logger for scheduling and save failures
    """

    def __init__(
        self,
        save: Callable[[], None],
        delay_ms: int = -1,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        logger: logging.Logger | None = None,
    ):
        self.delay_ms = delay_ms
        self._save = save
        self._timer_factory = timer_factory
        self._logger = logger or logging.getLogger(__name__)
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.delay_ms >= 0

    @property
    def pending(self) -> bool:
        """Whether a debounced save is waiting to fire."""
        return self._timer is not None

    def trigger(self) -> None:
        """Schedule a save according to the configured delay."""
        if self.delay_ms < 0:
            return

        if self.delay_ms == 0:
            self._logger.debug("Auto-save delay is 0, saving immediately")
            self._run()
            return

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._logger.debug("Cancelled queued auto-save")
            self._generation += 1
            timer = self._timer_factory(self.delay_ms / 1000, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        """Drop the pending save, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self._run()

    def _run(self) -> None:
        try:
            self._save()
        except Exception as e:
            self._logger.warning(f"Auto-save failed: {e}")
