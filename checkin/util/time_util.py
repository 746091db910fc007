from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta


def local_now() -> datetime:
    """Current wall-clock time. Everything in the app is naive local time."""
    return datetime.now()


def local_today() -> date:
    return local_now().date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class Conversion:
    """Parsing and formatting of the date/time strings the API exchanges."""

    date_pattern = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?\s*$")
    time_pattern = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")

    @staticmethod
    def parse_date(value) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        match = Conversion.date_pattern.match(str(value))
        if not match:
            raise ValueError(f"Invalid date format: {value!r}")
        year, month, day = (int(part) for part in match.groups())
        return date(year, month, day)

    @staticmethod
    def parse_time(value) -> time:
        if isinstance(value, time):
            return value
        match = Conversion.time_pattern.match(str(value))
        if not match:
            raise ValueError(f"Invalid time format: {value!r}")
        hours, minutes, seconds = match.groups(default="0")
        return time(int(hours), int(minutes), int(seconds))

    @staticmethod
    def parse_timestamp(value) -> datetime:
        if isinstance(value, datetime):
            return value
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1]
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid timestamp format: {value!r}") from None
        # stored values are naive local time
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed

    @staticmethod
    def format_date(value: date | None) -> str | None:
        return value.isoformat() if value else None

    @staticmethod
    def format_time(value: time | None) -> str | None:
        return value.strftime('%H:%M') if value else None

    @staticmethod
    def format_timestamp(value: datetime | None) -> str | None:
        return value.isoformat(timespec='milliseconds') if value else None
