"""
Jira Date Parsing

Jira exports print dates in the locale of the user who ran the export, e.g.
"28/Nov/25 3:39 PM" or "28/Kas/25 3:39 ÖS". This module turns those strings
into comparable instants (milliseconds since the epoch, local time).

An unparseable string yields 0 instead of raising. Callers treat 0 as
"unknown", which sorts as the oldest possible value and never exceeds a
cutoff.
"""

import logging
import re
from datetime import datetime
from typing import Dict, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

UNPARSEABLE = 0

# Localized month names and meridiem markers -> English tokens.
DEFAULT_DATE_TRANSLATIONS: Dict[str, str] = {
    # Turkish months, full and abbreviated, with and without diacritics
    "ocak": "jan", "oca": "jan",
    "şubat": "feb", "subat": "feb", "şub": "feb", "sub": "feb",
    "mart": "mar",
    "nisan": "apr", "nis": "apr",
    "mayıs": "may", "mayis": "may",
    "haziran": "jun", "haz": "jun",
    "temmuz": "jul", "tem": "jul",
    "ağustos": "aug", "agustos": "aug", "ağu": "aug", "agu": "aug",
    "eylül": "sep", "eylul": "sep", "eyl": "sep",
    "ekim": "oct", "eki": "oct",
    "kasım": "nov", "kasim": "nov", "kas": "nov",
    "aralık": "dec", "aralik": "dec", "ara": "dec",
    # Turkish AM/PM (öğleden önce / öğleden sonra)
    "öö": "am", "ös": "pm",
}

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# day/mon/year with optional hh:mm and optional am/pm
FALLBACK_PATTERN = re.compile(
    r"(\d{1,2})/([a-z]{3})/(\d{2,4})(?:\s+(\d{1,2}):(\d{2})(?:\s+(am|pm))?)?"
)

# Fill-in values for missing parts; a complete date parses the same under both
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[.\-]")
# Lower-casing a dotted capital I leaves a combining dot behind
_COMBINING_DOT = "\u0307"


def _to_millis(dt: datetime) -> int:
    return int(round(dt.timestamp() * 1000))


class JiraDateParser:
    """
    Parses Jira date-time text using a locale translation table.

    The table maps localized tokens to English ones. Tokens are replaced in a
    single pass where the longest token wins at any position, and only when
    the token is not part of a longer word ("tem" must not touch "september").
    """

    def __init__(self, translations: Optional[Dict[str, str]] = None):
        if translations is None:
            translations = DEFAULT_DATE_TRANSLATIONS
        self.translations = {k.lower(): v.lower() for k, v in translations.items()}

        tokens = sorted(self.translations, key=len, reverse=True)
        if tokens:
            alternation = "|".join(re.escape(t) for t in tokens)
            self._token_pattern = re.compile(
                rf"(?<![^\W\d_])(?:{alternation})(?![^\W\d_])"
            )
        else:
            self._token_pattern = None

    def normalize(self, text: str) -> str:
        """Collapse whitespace, translate locale tokens and unify separators."""
        clean = _WHITESPACE.sub(" ", text).strip().lower()
        clean = clean.replace(_COMBINING_DOT, "")
        if self._token_pattern is not None:
            clean = self._token_pattern.sub(
                lambda m: self.translations[m.group(0)], clean
            )
        return _SEPARATORS.sub("/", clean)

    def parse(self, text: Optional[str]) -> int:
        """
        Parse a date-time string into milliseconds since the epoch.

        Args:
            text: Raw date text from the export

        Returns:
            Milliseconds since the epoch, or 0 when the text is not a date
        """
        if not text or not str(text).strip():
            return UNPARSEABLE

        clean = self.normalize(str(text))

        try:
            first, second = (
                date_parser.parse(clean, dayfirst=True, default=default)
                for default in _FILL_DEFAULTS
            )
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Generic parse failed for '{clean}', trying Jira pattern")
        else:
            if first != second:
                # Day, month or year missing; dateutil would fill it in
                logger.debug(f"Incomplete date: '{text}'")
                return UNPARSEABLE
            try:
                return _to_millis(first)
            except (ValueError, OverflowError, OSError):
                logger.debug(f"Date out of range: '{text}'")
                return UNPARSEABLE

        match = FALLBACK_PATTERN.search(clean)
        if match:
            day, month_token, year, hour, minute, meridiem = match.groups()
            month = MONTHS.get(month_token)
            if month is not None:
                year = int(year)
                if year < 100:
                    year += 2000
                hour = int(hour) if hour else 0
                minute = int(minute) if minute else 0
                if meridiem == "pm" and hour < 12:
                    hour += 12
                elif meridiem == "am" and hour == 12:
                    hour = 0
                try:
                    return _to_millis(datetime(year, month, int(day), hour, minute))
                except (ValueError, OverflowError, OSError):
                    pass

        logger.debug(f"Unparseable date: '{text}'")
        return UNPARSEABLE


_default_parser = JiraDateParser()


def parse_jira_date(text: Optional[str]) -> int:
    """Parse a Jira date with the default translation table."""
    return _default_parser.parse(text)


def format_instant(instant: int) -> str:
    """Render an instant for logs and reports, '-' for the unknown sentinel."""
    if instant == UNPARSEABLE:
        return "-"
    return datetime.fromtimestamp(instant / 1000).strftime("%d.%m.%Y %H:%M")
