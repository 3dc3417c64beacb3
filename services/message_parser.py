"""
Parser for free-text transaction messages

Grammar:
    <income|outcome> <amount> <Category> <Account> [optional [YYYY-MM-DD HH:MM]] <optional description>

Example:
    outcome 75000 Food BCA [2025-08-29 11:30] Lunch at warung
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

from models.exceptions import FormatError, TRANSACTION_USAGE
from models.schemas import TransactionDraft, TransactionType
from services.date_resolver import parse_jakarta_local
from utils.helpers import collapse_whitespace, normalize_category, utc_now


_PLAIN_AMOUNT = re.compile(r'^\d+(?:[.,]\d{1,2})?$')
_GROUPED_AMOUNT = re.compile(r'^\d{1,3}(?:\.\d{3})+,\d{1,2}$')


class MessageTokens(NamedTuple):
    """Raw fields of a transaction message"""
    type: str
    amount: str
    category: str
    account: str
    timestamp: Optional[str]
    description: Optional[str]


def tokenize_message(text: str) -> MessageTokens:
    """Split a message into its named fields"""
    cleaned = collapse_whitespace(text or "")
    parts = cleaned.split(" ", 4)
    if len(parts) < 4:
        raise FormatError(f"Format: {TRANSACTION_USAGE}")

    type_raw, amount_raw, category_raw, account_raw = parts[:4]
    rest = parts[4] if len(parts) == 5 else ""

    timestamp = None
    if rest.startswith("["):
        closing = rest.find("]")
        if closing == -1:
            raise FormatError(f"Unterminated date, expected [YYYY-MM-DD HH:MM]. Format: {TRANSACTION_USAGE}")
        timestamp = rest[1:closing].strip()
        rest = rest[closing + 1:]

    description = rest.strip() or None
    return MessageTokens(type_raw, amount_raw, category_raw, account_raw, timestamp, description)


def parse_amount(raw: str) -> Decimal:
    """Parse 75000, 75.5, 75,50 or 1.500.000,50 into a Decimal"""
    if _PLAIN_AMOUNT.match(raw):
        normalized = raw.replace(",", ".")
    elif _GROUPED_AMOUNT.match(raw):
        normalized = raw.replace(".", "").replace(",", ".")
    else:
        raise FormatError(f"Bad amount '{raw}'. Format: {TRANSACTION_USAGE}")

    try:
        amount = Decimal(normalized)
    except InvalidOperation as e:
        raise FormatError(f"Bad amount '{raw}'") from e

    if not amount.is_finite() or amount < 0:
        raise FormatError(f"Bad amount '{raw}'")
    return amount


def parse_type(raw: str) -> TransactionType:
    try:
        return TransactionType(raw.lower())
    except ValueError:
        raise FormatError(f"Unknown transaction type '{raw}'. Format: {TRANSACTION_USAGE}") from None


def parse_message(text: str, now: Optional[datetime] = None) -> TransactionDraft:
    """Parse one message into a TransactionDraft

    Without an embedded timestamp the transaction happens at `now`,
    which defaults to the current UTC instant of this call.
    """
    tokens = tokenize_message(text)

    transaction_type = parse_type(tokens.type)
    amount = parse_amount(tokens.amount)

    if tokens.timestamp is not None:
        occurred_at = parse_jakarta_local(tokens.timestamp)
    else:
        occurred_at = now or utc_now()

    return TransactionDraft(
        type=transaction_type,
        amount=amount,
        category=normalize_category(tokens.category),
        account=tokens.account.strip(),
        occurred_at=occurred_at,
        description=tokens.description
    )
