"""Date recognition for titles, paths and spreadsheet cells."""

import re
from datetime import date

ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
# Long form used by the legacy exporter's Korean locale: "2024년 3월 1일"
LONG_DATE_RE = re.compile(r"(\d{4})년\s*(\d{1,2})월\s*(\d{1,2})일")


def _to_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_flexible(text: str | None) -> date | None:
    """
    Find the first date inside an arbitrary string.

    ISO `YYYY-MM-DD` anywhere in the text wins over the long form. Matches
    that are not real calendar days (month 13, Feb 30) are skipped.

    Examples:
        >>> parse_flexible("notes/2024-03-01 standup.md")
        datetime.date(2024, 3, 1)
        >>> parse_flexible("2024년 3월 1일 회의")
        datetime.date(2024, 3, 1)
        >>> parse_flexible("2024-13-01") is None
        True
    """
    if not text or not text.strip():
        return None

    for match in ISO_DATE_RE.finditer(text):
        parsed = _to_date(*match.groups())
        if parsed is not None:
            return parsed

    for match in LONG_DATE_RE.finditer(text):
        parsed = _to_date(*match.groups())
        if parsed is not None:
            return parsed

    return None
