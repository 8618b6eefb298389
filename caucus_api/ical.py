"""
iCalendar (.ics) export for caucus events.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from caucus_api.db import EventRecord

EVENT_DURATION = dt.timedelta(hours=1)
MAX_DESCRIPTION_CONTENT = 500
_LINE_LIMIT = 75

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)
_MARKDOWN_CHARS = re.compile(r"[#*_~`]")
_BLANK_LINES = re.compile(r"\n{2,}")


def parse_event_time(value: str) -> tuple[int, int]:
    """
    Parse "6:00 PM", "18:00" or "10:00 AM ET" into (hour, minute).

    Unparseable input yields midnight.
    """
    match = _TIME_PATTERN.search(value or "")
    if not match:
        return 0, 0
    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = (match.group(3) or "").upper()
    if meridiem == "PM" and hours < 12:
        hours += 12
    elif meridiem == "AM" and hours == 12:
        hours = 0
    if hours > 23 or minutes > 59:
        return 0, 0
    return hours, minutes


def format_ical_datetime(value: dt.datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc)
        return value.strftime("%Y%m%dT%H%M%SZ")
    return value.strftime("%Y%m%dT%H%M%S")


def escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line at 75 octets, continuation lines start with a space."""
    encoded = line.encode("utf-8")
    if len(encoded) <= _LINE_LIMIT:
        return line
    parts: list[str] = []
    current = ""
    limit = _LINE_LIMIT
    for char in line:
        if len((current + char).encode("utf-8")) > limit:
            parts.append(current)
            current = char
            limit = _LINE_LIMIT - 1
        else:
            current += char
    parts.append(current)
    return "\r\n ".join(parts)


def strip_markdown(content: str) -> str:
    plain = _MARKDOWN_CHARS.sub("", content)
    plain = _BLANK_LINES.sub("\n\n", plain)
    return plain[:MAX_DESCRIPTION_CONTENT]


def build_description(event: EventRecord) -> str:
    description = event.topic
    if event.presenter:
        description += f"\n\nPresenter: {event.presenter}"
        if event.presenter_url:
            description += f" ({event.presenter_url})"
    if event.content:
        description += f"\n\n{strip_markdown(event.content)}"
    return description


def build_location(event: EventRecord) -> str:
    if event.location_url:
        return f"{event.location} - {event.location_url}"
    return event.location


def build_event_calendar(
    event: EventRecord,
    *,
    site_name: str,
    site_domain: str,
    now: Optional[dt.datetime] = None,
) -> str:
    """Render a single-event VCALENDAR document with CRLF line endings."""
    hours, minutes = parse_event_time(event.time)
    start = dt.datetime.combine(event.date, dt.time(hours, minutes))
    end = start + EVENT_DURATION
    stamp = now or dt.datetime.now(dt.timezone.utc)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{site_name}//Event//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:event-{event.id}@{site_domain}",
        f"DTSTAMP:{format_ical_datetime(stamp)}",
        f"DTSTART:{format_ical_datetime(start)}",
        f"DTEND:{format_ical_datetime(end)}",
        f"SUMMARY:{escape_text(event.topic)}",
        f"DESCRIPTION:{escape_text(build_description(event))}",
        f"LOCATION:{escape_text(build_location(event))}",
        "STATUS:CONFIRMED",
        "SEQUENCE:0",
        "BEGIN:VALARM",
        "TRIGGER:-PT1H",
        "ACTION:DISPLAY",
        "DESCRIPTION:Reminder: Event starts in 1 hour",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(fold_line(line) for line in lines) + "\r\n"
