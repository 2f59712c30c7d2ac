"""Jinja2 templates and the filters the pages use."""

from datetime import datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

from clock import as_utc, utcnow

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _timeago(dt: datetime | None) -> str:
    if dt is None:
        return ""
    seconds = (utcnow() - as_utc(dt)).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    if seconds < 604800:
        return f"{int(seconds // 86400)}d ago"
    return dt.strftime("%Y-%m-%d")


def _filesize(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


def _datetime(dt: datetime | None) -> str:
    return dt.strftime("%Y-%m-%d %H:%M UTC") if dt else ""


templates.env.filters["timeago"] = _timeago
templates.env.filters["filesize"] = _filesize
templates.env.filters["datetime"] = _datetime
