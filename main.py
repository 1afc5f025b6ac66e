import atexit
import logging
import os
import sys
import threading
import time

import keyboard

from cache_manager import CacheManager
from desktop import DesktopWallpaper
from errors import ConfigError
from scheduler_service import SchedulerService
from settings import ConfigHolder, load_config
from tray_app import TrayApp
from wallhaven_client import SearchClient
from wallpaper_changer import WallpaperChanger

APP_DIR = os.path.join(os.path.expanduser("~"), ".rngpaper")
PID_FILE = "rngpaper.pid"


def setup_logging(log_path: str, level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path, encoding='utf-8'),
            logging.StreamHandler()
        ]
    )


class WallpaperApp:
    def __init__(self, config_holder: ConfigHolder, app_dir: str = APP_DIR) -> None:
        self.app_dir = app_dir
        self.logger = logging.getLogger(__name__)
        self.logger.info("Initializing rngpaper")

        self.config_holder = config_holder
        snapshot = config_holder.snapshot()
        for key, value in config_holder.describe().items():
            self.logger.info(" - %s: %s", key, value)

        self.client = SearchClient(timeout=snapshot.search.timeout_seconds, logger=self.logger)
        self.cache_manager = CacheManager(snapshot.cache_path, downloader=self.client.download, logger=self.logger)
        self.desktop = DesktopWallpaper.create()
        self.changer = WallpaperChanger(
            config_holder,
            self.client,
            self.cache_manager,
            self.desktop,
            logger=self.logger,
        )
        self.scheduler = SchedulerService(self.changer, config_holder, logger=self.logger)
        self.tray_app = TrayApp(self)
        self._stop_event = threading.Event()
        self._stopped = False
        self.pid_path = os.path.join(self.app_dir, PID_FILE)
        self._pid_registered = False

    def start(self) -> None:
        snapshot = self.config_holder.snapshot()
        self.logger.info("Starting rngpaper (hotkey: %s, desktop: %s)", snapshot.hotkey, self.desktop.name)
        self._write_pid()
        self._register_hotkey(snapshot.hotkey)
        if snapshot.apply_on_startup:
            self.changer.change_wallpaper("startup")
        self.scheduler.start()
        self.tray_app.start()
        self._run_loop()

    def stop(self) -> None:
        self._stop_event.set()
        if self._stopped:
            return
        self._stopped = True
        self.logger.info("Stopping rngpaper")
        keyboard.unhook_all_hotkeys()
        self.scheduler.stop()
        self.tray_app.stop()
        self.changer.shutdown()
        self._remove_pid()

    def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                time.sleep(0.5)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def _write_pid(self) -> None:
        try:
            with open(self.pid_path, "w", encoding="utf-8") as handle:
                handle.write(str(os.getpid()))
            if not self._pid_registered:
                atexit.register(self._remove_pid)
                self._pid_registered = True
        except OSError as error:
            self.logger.warning("Unable to write PID file: %s", error)

    def _remove_pid(self) -> None:
        if os.path.exists(self.pid_path):
            try:
                os.remove(self.pid_path)
            except OSError:
                pass

    def _register_hotkey(self, hotkey: str) -> None:
        try:
            keyboard.add_hotkey(hotkey, lambda: self.changer.change_wallpaper("hotkey"))
        except ValueError as error:
            raise ConfigError(f"Invalid hotkey '{hotkey}': {error}") from error


def main() -> int:
    import config

    os.makedirs(APP_DIR, exist_ok=True)
    log_settings = getattr(config, "LogSettings", {}) or {}
    setup_logging(
        os.path.join(APP_DIR, log_settings.get("file_name", "rngpaper.log")),
        log_settings.get("level", "INFO"),
    )
    logger = logging.getLogger(__name__)

    try:
        app = WallpaperApp(ConfigHolder(load_config()))
        app.start()
    except ConfigError as error:
        logger.error("Configuration error: %s", error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
