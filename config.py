import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / '.env'
load_dotenv(dotenv_path=env_path)

# Wallhaven collections to pick from. Each tag should start with @ (e.g. "@arkas").
# One tag is chosen at random for every wallpaper change.
Collections = ["@arkas"]

# Minutes between automatic wallpaper changes (used when the scheduler is enabled)
IntervalMinutes = 10

# "landscape", "portrait" or "squarish"
Orientation = "landscape"

# Leave blank to derive it from Orientation (1920x1080 / 1080x1920 / 1440x1440)
ImageResolution = ""

# Enter your Wallhaven API Key from https://wallhaven.cc/settings/account (required for NSFW)
# Or set it in the .env file as WALLHAVEN_API_KEY
ApiKey = os.getenv("WALLHAVEN_API_KEY", "")

# Wallhaven categories, sent as a 3-digit flag string (general/anime/people)
Categories = {
    "general": False,
    "anime": True,
    "people": False,
}

# Wallhaven purity, sent as a 3-digit flag string (sfw/sketchy/nsfw)
Purity = {
    "sfw": True,
    "sketchy": False,
    "nsfw": False,
}

# Default is ctrl+alt+w, use https://github.com/boppreh/keyboard#api to see all different key names
KeyBind = "ctrl+alt+w"

# Change the wallpaper once as soon as the app starts
ApplyOnStartup = False

# Cache settings: directory (blank for default ~/.rngpaper/cache)
CacheSettings = {
    "directory": "",
}

# Search API settings
SearchSettings = {
    "base_url": "https://wallhaven.cc/api/v1/search",
    "timeout_seconds": 30,
    # Extra requests made when the search reports 0 pages, before giving up
    "empty_retries": 5,
    "empty_retry_delay_ms": 250,
    # Pick pages from [1, last_page) when False, [1, last_page] when True
    "include_last_page": False,
}

# Automatic rotation every IntervalMinutes
SchedulerSettings = {
    "enabled": False,
    "initial_delay_minutes": 0,
}

# Log file lives in the app data directory (~/.rngpaper)
LogSettings = {
    "level": "INFO",
    "file_name": "rngpaper.log",
}
