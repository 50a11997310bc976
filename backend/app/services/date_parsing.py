"""
Lenient date parsing for AI-extracted and reviewer-entered values.
"""
from datetime import date, datetime
from typing import Optional

DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%Y/%m/%d",
]


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a date string into a date, or None if no format matches."""
    if not value:
        return None
    text = str(value).strip()

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None
