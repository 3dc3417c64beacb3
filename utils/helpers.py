"""
General helpers: time zone, number formatting and month names
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Union

from models.schemas import MONTH_NAMES


JAKARTA_OFFSET = timedelta(hours=7)
JAKARTA_TZ = timezone(JAKARTA_OFFSET, "Asia/Jakarta")

MONTH_LOOKUP = {
    "jan": 1, "january": 1, "januari": 1,
    "feb": 2, "february": 2, "februari": 2,
    "mar": 3, "march": 3, "maret": 3,
    "apr": 4, "april": 4,
    "may": 5, "mei": 5,
    "jun": 6, "june": 6, "juni": 6,
    "jul": 7, "july": 7, "juli": 7,
    "aug": 8, "august": 8, "agustus": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10, "oktober": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12, "desember": 12,
}

Number = Union[Decimal, int, float]


def utc_now() -> datetime:
    """Current UTC instant"""
    return datetime.now(timezone.utc)


def to_jakarta(value: datetime) -> datetime:
    """Convert an instant to Jakarta local time"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(JAKARTA_TZ)


def collapse_whitespace(text: str) -> str:
    """Trim and collapse whitespace runs to single spaces"""
    return re.sub(r'\s+', ' ', text).strip()


def normalize_category(name: str) -> str:
    """First character upper case, the rest lower case"""
    name = name.strip()
    return name[:1].upper() + name[1:].lower()


def format_amount(value: Number) -> str:
    """Format a number the id-ID way: 1.234.567,5"""
    value = Decimal(str(value))
    sign = "-" if value < 0 else ""
    integer, fraction = f"{abs(value):,.3f}".split(".")
    fraction = fraction.rstrip("0")
    text = integer.replace(",", ".")
    if fraction:
        text += f",{fraction}"
    return f"{sign}{text}"


def format_currency(value: Number, currency: str = "IDR") -> str:
    """Format a value as currency with two decimals"""
    value = Decimal(str(value))
    sign = "-" if value < 0 else ""
    integer, fraction = f"{abs(value):,.2f}".split(".")
    text = f"{integer.replace(',', '.')},{fraction}"
    if currency == "IDR":
        return f"{sign}Rp {text}"
    return f"{sign}{text} {currency}"


def format_jakarta_datetime(value: datetime) -> str:
    """Jakarta local time as 29/08/2025, 11:30:00"""
    return to_jakarta(value).strftime("%d/%m/%Y, %H:%M:%S")


def format_jakarta_day_month(value: datetime) -> str:
    """Jakarta local date as 29/08"""
    return to_jakarta(value).strftime("%d/%m")


def get_month_name(month_number: int) -> str:
    """English month name"""
    if 1 <= month_number <= 12:
        return MONTH_NAMES[month_number - 1]
    return "Unknown"


def parse_month_name(text: str) -> Optional[int]:
    """Month number from an English or Indonesian name, full or abbreviated"""
    return MONTH_LOOKUP.get(text.strip().lower())
