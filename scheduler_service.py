import logging
import threading
import time
from typing import Optional

from settings import ConfigHolder


class SchedulerService:
    def __init__(self, changer, config_holder: ConfigHolder, logger: Optional[logging.Logger] = None):
        self.changer = changer
        self.config_holder = config_holder
        self.logger = logger or logging.getLogger(__name__)
        snapshot = config_holder.snapshot()
        self.enabled = snapshot.scheduler_enabled
        self.initial_delay_minutes = snapshot.scheduler_initial_delay_minutes
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def interval_seconds(self) -> float:
        return self.config_holder.snapshot().poll_interval.total_seconds()

    def start(self) -> None:
        if not self.enabled or self._thread:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="WallpaperScheduler", daemon=True)
        self._thread.start()
        self.logger.info("[Scheduler] Started (every %d s)", int(self.interval_seconds))

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive() and threading.current_thread() != thread:
            thread.join(timeout=2)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled:
            self.start()
        else:
            self.stop()
            self.logger.info("[Scheduler] Stopped")

    def toggle(self) -> bool:
        self.set_enabled(not self.enabled)
        return self.enabled

    def _run(self) -> None:
        if self.initial_delay_minutes:
            if self._wait(self.initial_delay_minutes * 60):
                return

        while not self._stop_event.is_set():
            self.changer.change_wallpaper("scheduler")
            if self._wait(self.interval_seconds):
                break

    def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if stop was requested meanwhile."""
        end_time = time.monotonic() + seconds
        while True:
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                return False
            if self._stop_event.wait(timeout=min(remaining, 1)):
                return True
