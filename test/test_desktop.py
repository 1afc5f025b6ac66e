import subprocess
from unittest.mock import patch

import pytest

from desktop import DesktopWallpaper, GnomeWallpaper, describe_current
from errors import WallpaperError


def _completed(stdout: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["gsettings"], returncode=0, stdout=stdout, stderr="")


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_get_current_wallpaper(fake_run):
    fake_run.return_value = _completed("'file:///home/user/.rngpaper/cache/my%20wall.jpg'\n")

    assert GnomeWallpaper().get_current_wallpaper() == "/home/user/.rngpaper/cache/my wall.jpg"


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_get_failure(fake_run):
    fake_run.side_effect = subprocess.CalledProcessError(cmd="gsettings", returncode=1)

    with pytest.raises(WallpaperError):
        GnomeWallpaper().get_current_wallpaper()


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_empty_value_means_none_set(fake_run):
    fake_run.return_value = _completed("''")

    with pytest.raises(WallpaperError):
        GnomeWallpaper().get_current_wallpaper()


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_set_wallpaper(fake_run, tmp_path):
    image = tmp_path / "wallhaven-abc.jpg"
    image.write_bytes(b"x")
    fake_run.return_value = _completed()

    GnomeWallpaper().set_wallpaper(str(image))

    keys = [call.args[0][3] for call in fake_run.call_args_list]
    assert keys == ["picture-uri", "picture-uri-dark"]
    assert fake_run.call_args_list[0].args[0][4] == image.resolve().as_uri()


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_without_dark_key(fake_run, tmp_path):
    fake_run.side_effect = [_completed(), subprocess.CalledProcessError(cmd="gsettings", returncode=1)]

    GnomeWallpaper().set_wallpaper(str(tmp_path / "a.jpg"))

    assert fake_run.call_count == 2


@patch("desktop.subprocess.run", autospec=True)
def test_gnome_missing_gsettings(fake_run, tmp_path):
    fake_run.side_effect = FileNotFoundError("gsettings")

    with pytest.raises(WallpaperError):
        GnomeWallpaper().set_wallpaper(str(tmp_path / "a.jpg"))


def test_unsupported_backend_raises():
    with pytest.raises(WallpaperError):
        DesktopWallpaper().set_wallpaper("/tmp/a.jpg")


@pytest.mark.parametrize("platform, name", [("win32", "windows"), ("darwin", "macos"), ("linux", "gnome")])
def test_create_picks_backend(platform, name):
    with patch("desktop.sys.platform", platform):
        assert DesktopWallpaper.create().name == name


def test_describe_current_swallows_errors():
    assert describe_current(DesktopWallpaper()) is None
