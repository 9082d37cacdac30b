"""Text helpers shared by the HTTP API and the Telegram bot.

Duration formatting, download filename sanitizing, MarkdownV2 escaping,
URL detection and the simulated progress bar shown while a job runs.
"""

import random
import re
from typing import Optional
from urllib.parse import quote

URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)

# Every character Telegram's MarkdownV2 treats as markup.
_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!])")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\s\-_.()]")
_WHITESPACE = re.compile(r"\s+")


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS, or H:MM:SS once past an hour."""
    seconds = int(seconds or 0)
    hrs, rem = divmod(seconds, 3600)
    mins, secs = divmod(rem, 60)
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def sanitize_filename(path: str, default: str = "video") -> str:
    """Turn a downloaded file path into a safe attachment name ending in .mp4.

    Strips everything but word characters, whitespace, dashes, dots and
    parentheses, and collapses whitespace runs into underscores.
    """
    raw_name = path.replace("\\", "/").split("/")[-1] or f"{default}.mp4"
    safe = _UNSAFE_FILENAME_CHARS.sub("", raw_name)
    safe = _WHITESPACE.sub("_", safe).strip() or default
    return safe if safe.endswith(".mp4") else f"{safe}.mp4"


def content_disposition(filename: str) -> str:
    return f"attachment; filename=\"{filename}\"; filename*=UTF-8''{quote(filename)}"


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text or "")


def find_first_url(text: str) -> Optional[str]:
    match = URL_PATTERN.search(text or "")
    return match.group(0) if match else None


def progress_bar(percent: int, width: int = 10) -> str:
    """Render a block progress bar, e.g. ``▓▓▓░░░░░░░ 30%``."""
    percent = max(0, min(100, int(percent)))
    filled = round(width * percent / 100)
    return f"{'▓' * filled}{'░' * (width - filled)} {percent}%"


def next_simulated_percent(current: int, rng: Optional[random.Random] = None) -> int:
    """Advance the fake download progress: fast at first, slowing down, capped at 95."""
    rng = rng or random
    if current < 30:
        current += rng.randint(3, 10)
    elif current < 60:
        current += rng.randint(2, 6)
    elif current < 85:
        current += rng.randint(1, 3)
    elif current < 95:
        current += 1
    return min(current, 95)
