"""
Exceptions raised by the ledger bot
"""

TRANSACTION_USAGE = (
    "<income|outcome> <amount> <Category> <Account> "
    "[optional [YYYY-MM-DD HH:MM]] <optional description>"
)

OUTCOME_RANGE_USAGE = "/outcome, /outcome today, /outcome 2024-01, /outcome Jan 2024 or /outcome 2024"

SUMMARY_RANGE_USAGE = (
    "/summary, /summary Sept 2025, /summary 2025-09, /summary 2025 "
    "or /summary Sept 2025 - Oct 2025"
)


class LedgerBotError(Exception):
    """Base error of the ledger bot"""


class FormatError(LedgerBotError):
    """Message did not match the expected grammar"""

    def __init__(self, message: str, usage: str = TRANSACTION_USAGE):
        super().__init__(message)
        self.usage = usage


class InvalidDateError(FormatError):
    """Malformed embedded timestamp"""

    def __init__(self, message: str):
        super().__init__(message, usage="[YYYY-MM-DD HH:MM]")


class InvalidRangeError(FormatError):
    """Malformed report range expression"""

    def __init__(self, message: str, usage: str = SUMMARY_RANGE_USAGE):
        super().__init__(message, usage=usage)


class BudgetEvaluationError(LedgerBotError):
    """Budget check failed; never blocks a transaction save"""


class StorageError(LedgerBotError):
    """Storage read or write failed"""


class CategoryTypeError(StorageError):
    """Category does not allow the transaction type"""


class RegistrationError(LedgerBotError):
    """Telegram user could not be linked"""


class InactiveUserError(LedgerBotError):
    """Telegram link exists but is disabled"""


class OCRUnavailableError(LedgerBotError):
    """Image text extraction is not configured or failed"""
