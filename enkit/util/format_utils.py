from datetime import datetime, timezone
from textwrap import indent
from typing import Any, Iterable, Optional

from humanize import naturaltime
from inflect import engine

_inflect = engine()


def fmt_lines(values: Iterable[Any], prefix: str = "    ", line_break: str = "\n") -> str:
    """
    Simple indented or prefixed formatting of values one per line.
    """
    return indent(line_break.join(str(value) for value in values), prefix).rstrip()


def fmt_time(
    dt: Optional[datetime],
    friendly: bool = True,
    age: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """
    Format a datetime for display in various formats:
    - Friendly format (e.g. "2024-03-15 17:23 UTC")
    - ISO timestamp (e.g. "2024-03-15T17:23:45Z")
    - Friendly format plus age (e.g. "2024-03-15 17:23 UTC (2 days ago)")
    """
    if dt is None:
        return "unknown"
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    if friendly:
        formatted = dt.strftime("%Y-%m-%d %H:%M UTC")
    else:
        formatted = dt.isoformat().split("+", 1)[0].split(".", 1)[0] + "Z"
    if age:
        formatted += f" ({naturaltime(dt, when=now or datetime.now(timezone.utc))})"
    return formatted


def fmt_count_items(count: int, name: str = "item") -> str:
    """
    Format a count and a name as a pluralized phrase, e.g. "1 note" or "2 notes".
    """
    return f"{count} {_inflect.plural(name, count)}"  # type: ignore


## Tests


def test_fmt_time():
    dt = datetime(2024, 3, 15, 17, 23, 45, 123000, tzinfo=timezone.utc)
    assert fmt_time(dt) == "2024-03-15 17:23 UTC"
    assert fmt_time(dt, friendly=False) == "2024-03-15T17:23:45Z"
    assert fmt_time(None) == "unknown"
    later = datetime(2024, 3, 17, 17, 23, 45, tzinfo=timezone.utc)
    assert fmt_time(dt.replace(microsecond=0), age=True, now=later).endswith("(2 days ago)")


def test_fmt_count_items():
    assert fmt_count_items(1, "note") == "1 note"
    assert fmt_count_items(3, "tag") == "3 tags"
    assert fmt_count_items(0, "note") == "0 notes"
