import threading
from typing import Optional

import pystray
from PIL import Image, ImageDraw


def _create_icon(size: int = 64) -> Image.Image:
    image = Image.new("RGBA", (size, size), (30, 30, 30, 255))
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, 0, size, size], fill=(34, 40, 49, 255))
    draw.text((size * 0.25, size * 0.2), "R", fill=(0, 173, 181, 255))
    draw.text((size * 0.25, size * 0.55), "P", fill=(238, 238, 238, 255))
    return image


class TrayApp:
    def __init__(self, controller):
        self.controller = controller
        self.icon = pystray.Icon(
            "rngpaper",
            icon=_create_icon(),
            title="rngpaper",
            menu=self._build_menu(),
        )
        self._thread: Optional[threading.Thread] = None

    def _build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem("Change Wallpaper", self._change_now, default=True),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "Auto Change",
                self._toggle_scheduler,
                checked=lambda item: self.controller.scheduler.enabled,
            ),
            pystray.MenuItem("Open Cache Folder", self._open_cache),
            pystray.MenuItem("Empty Cache", self._empty_cache),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", self._quit),
        )

    def _change_now(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self.controller.changer.change_wallpaper("tray")

    def _empty_cache(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self.controller.changer.empty_cache("tray")

    def _open_cache(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self.controller.cache_manager.open_folder()

    def _toggle_scheduler(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self.controller.scheduler.toggle()

    def _quit(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self.controller.stop()
        icon.stop()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.icon.run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self.icon:
            try:
                self.icon.stop()
            except RuntimeError:
                # Icon loop might already be stopping; ignore race conditions
                pass
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive() and threading.current_thread() != thread:
            thread.join(timeout=2)
