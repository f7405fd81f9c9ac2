"""Date format grammar used by the `date` rule.

Formats use single-character tokens (``Y-m-d``, ``M d, Y``, ``l, F jS``...).
A format is compiled once into a case-insensitive, fully matched regular
expression with one group per token; matched values are then resolved to a
calendar date so that impossible dates (February 31st) are rejected.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date

ENGLISH_DAYS = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

ENGLISH_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Token -> pattern for the value matched by that token
TOKEN_PATTERNS: dict[str, str] = {
    "d": r"0[1-9]|[12][0-9]|3[01]",
    "D": r"[a-z]{3}",
    "j": r"[1-9]|[12][0-9]|3[01]",
    "l": r"[a-z]+",
    "N": r"[1-7]",
    "S": r"st|nd|rd|th",
    "w": r"[0-6]",
    "F": r"[a-z]+",
    "m": r"0[1-9]|1[012]",
    "M": r"[a-z]{3}",
    "n": r"[1-9]|1[012]",
    "Y": r"[0-9]{4}",
    "y": r"[0-9]{2}",
    "G": r"[0-9]|1[0-9]|2[0-3]",
    "H": r"0[0-9]|1[0-9]|2[0-3]",
    "g": r"[0-9]|1[0-2]",
    "h": r"0[0-9]|1[0-2]",
    "a": r"am|pm",
    "A": r"am|pm",
    "i": r"[0-5][0-9]",
    "s": r"[0-5][0-9]",
    "U": r"[0-9]+",
}


@dataclass(frozen=True)
class DateFormat:
    """A compiled date format.

    Attributes:
        format: The token format string
        day_names: Full day names, Sunday first, for the ``D``/``l`` tokens
        month_names: Full month names, January first, for ``F``/``M``
    """

    format: str
    day_names: tuple[str, ...] = ENGLISH_DAYS
    month_names: tuple[str, ...] = ENGLISH_MONTHS

    @property
    def tokens(self) -> list[str]:
        return [char for char in self.format if char in TOKEN_PATTERNS]

    @property
    def pattern(self) -> re.Pattern[str]:
        return _compile(self.format)

    def parse(self, value: str, today: date | None = None) -> date | None:
        """Resolve a value to a calendar date, or None if it does not match.

        Args:
            value: The user-entered string
            today: Reference date for formats without a year

        Returns:
            The resolved date, or None when the string does not match the
            format or names an impossible date
        """
        match = self.pattern.fullmatch(value)
        if match is None:
            return None

        day: int | None = None
        month: int | None = None
        year: int | None = None

        for token, segment in zip(self.tokens, match.groups()):
            if token in ("d", "j"):
                day = int(segment)
            elif token in ("m", "n"):
                month = int(segment)
            elif token == "Y":
                year = int(segment)
            elif token == "y":
                year = 1900 + int(segment)
            elif token in ("D", "l"):
                if _name_index(segment, self.day_names, token == "D") is None:
                    return None
            elif token in ("F", "M"):
                index = _name_index(segment, self.month_names, token == "M")
                if index is None:
                    return None
                month = index + 1

        if year is None:
            year = (today or date.today()).year

        try:
            return date(year, month or 1, day or 1)
        except ValueError:
            return None

    def timestamp(self, value: str, today: date | None = None) -> int | None:
        """UTC epoch seconds of the resolved date at midnight, or None."""
        resolved = self.parse(value, today=today)
        if resolved is None:
            return None
        return calendar.timegm(resolved.timetuple())


def _name_index(segment: str, names: tuple[str, ...], short: bool) -> int | None:
    needle = segment.lower()
    for index, name in enumerate(names):
        candidate = name[:3] if short else name
        if needle == candidate.lower():
            return index
    return None


_compiled: dict[str, re.Pattern[str]] = {}


def _compile(format: str) -> re.Pattern[str]:
    if format not in _compiled:
        parts = []
        for char in format:
            if char in TOKEN_PATTERNS:
                parts.append(f"({TOKEN_PATTERNS[char]})")
            else:
                parts.append(re.escape(char))
        _compiled[format] = re.compile("".join(parts), re.IGNORECASE)
    return _compiled[format]
