import html
import re
from datetime import datetime, timezone

STREAM_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")


def is_valid_stream_name(name: str | None) -> bool:
    return bool(name) and STREAM_NAME_PATTERN.fullmatch(name) is not None


def sanitize_text(text: str) -> str:
    return html.escape(text, quote=True)


def format_clock(ts: float) -> str:
    """Local wall clock as ``HH:MM``."""
    return datetime.fromtimestamp(ts).strftime("%H:%M")


def format_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def format_duration(seconds: float) -> str:
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
