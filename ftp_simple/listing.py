"""
Parsing of Unix ``ls -l`` style directory listings.

Recent entries carry a ``HH:MM`` time instead of a year; their year is
inferred relative to the current date.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from .exceptions import FTPListingError

MONTHS: Dict[str, int] = {
    'Jan': 1, 'Feb': 2, 'Mar': 3, 'Apr': 4, 'May': 5, 'Jun': 6,
    'Jul': 7, 'Aug': 8, 'Sep': 9, 'Oct': 10, 'Nov': 11, 'Dec': 12
}

_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class DirectoryEntry:
    """One file from a directory listing"""
    name: str
    size: int
    date: date


def month_to_number(month: str) -> int:
    """Map a three-letter month abbreviation to 1..12

    Raises:
        FTPListingError: For anything but the twelve standard abbreviations
    """
    try:
        return MONTHS[month]
    except KeyError:
        raise FTPListingError(f"Unknown month abbreviation: {month!r}")


def infer_year(month: int, day: int, today: Optional[date] = None) -> int:
    """Year of an entry whose listing omits it

    Args:
        month: Entry month
        day: Entry day of month
        today: Reference date, defaults to the current date

    Returns:
        This year if the entry's month and day have been reached, else last year
    """
    today = today or date.today()
    if (month, day) <= (today.month, today.day):
        return today.year
    return today.year - 1


def parse_listing_line(line: str, today: Optional[date] = None) -> Optional[DirectoryEntry]:
    """Parse one listing line

    Returns:
        The entry, or None when the line carries no file name

    Raises:
        FTPListingError: If a named entry has an unreadable size or date
    """
    parts = line.strip().split()
    name = " ".join(parts[8:])
    if not name.strip():
        return None

    try:
        size = int(parts[4])
        month = month_to_number(parts[5])
        day = int(parts[6])
        if ":" in parts[7]:
            year = infer_year(month, day, today)
        else:
            year = int(parts[7])
        return DirectoryEntry(name=name, size=size, date=date(year, month, day))
    except ValueError as e:
        raise FTPListingError(f"Unparsable listing line {line!r}: {e}")


def parse_listing(text: str, today: Optional[date] = None) -> List[DirectoryEntry]:
    """Parse a full listing in the order the server sent it"""
    entries: List[DirectoryEntry] = []
    for line in _LINE_SPLIT_RE.split(text):
        if not line.strip():
            continue
        entry = parse_listing_line(line, today)
        if entry is not None:
            entries.append(entry)
    return entries
