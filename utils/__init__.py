"""
Utils package - Utility functions and helpers
"""

from .helpers import (
    JAKARTA_TZ,
    utc_now,
    to_jakarta,
    collapse_whitespace,
    normalize_category,
    format_amount,
    format_currency,
    format_jakarta_datetime,
    format_jakarta_day_month,
    get_month_name,
    parse_month_name
)

__all__ = [
    'JAKARTA_TZ',
    'utc_now',
    'to_jakarta',
    'collapse_whitespace',
    'normalize_category',
    'format_amount',
    'format_currency',
    'format_jakarta_datetime',
    'format_jakarta_day_month',
    'get_month_name',
    'parse_month_name'
]
