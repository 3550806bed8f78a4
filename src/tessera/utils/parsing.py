"""
Locale-invariant parsers for raw cell text.

Every parser strips surrounding whitespace, raises ParseError on failure and
returns a native Python value on success. The canonical string forms written
back into the table are produced by the format_* helpers.
"""
import re
from datetime import date, datetime
from typing import Optional

from tessera.utils.exceptions import ParseError

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

# Month-first forms follow the invariant culture; ISO forms go through fromisoformat first.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%A, %d %B %Y",
    "%A, %B %d, %Y",
)


def is_empty(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise ParseError(f"expected a boolean (true/false), got '{text}'")


def parse_int(text: str) -> int:
    value = text.strip()
    if not _INT_RE.fullmatch(value):
        raise ParseError(f"expected an integer, got '{text}'")
    return int(value)


def parse_float(text: str, allow_decimal_comma: bool = False) -> float:
    value = text.strip()
    if allow_decimal_comma and "," in value and "." not in value:
        # European format "88,9" -> "88.9"
        value = value.replace(",", ".")
    if not _FLOAT_RE.fullmatch(value):
        raise ParseError(f"expected a floating point number, got '{text}'")
    number = float(value)
    if number in (float("inf"), float("-inf")):
        raise ParseError(f"number '{text}' is out of range")
    return number


def parse_date(text: str) -> datetime:
    value = text.strip()
    if not value:
        raise ParseError("expected a date, got an empty value")

    iso = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ParseError(f"expected a date, got '{text}'")


def can_parse(parser, text: str) -> bool:
    try:
        parser(text)
    except ParseError:
        return False
    return True


# ---------------------------------------------------------------------------
# CANONICAL FORMS
# ---------------------------------------------------------------------------

def format_bool(value: bool) -> str:
    return "True" if value else "False"


def format_int(value: int) -> str:
    return str(value)


def format_float(value: float) -> str:
    """Shortest round-trip text; whole numbers drop the trailing '.0'."""
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")
