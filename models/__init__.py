"""
Models package - Pydantic schemas and exceptions
"""

from .schemas import (
    TransactionType,
    BudgetPeriod,
    AllowedType,
    AlertKind,
    TransactionDraft,
    Budget,
    PeriodWindow,
    TransactionAmount,
    BudgetEvaluation,
    BudgetStatus,
    ReportQuerySpec,
    MonthlySummary,
    OutcomeRecord,
    IncomingMessage,
    SaveResult,
    PendingConfirmation
)
from .exceptions import (
    LedgerBotError,
    FormatError,
    InvalidDateError,
    InvalidRangeError,
    BudgetEvaluationError,
    StorageError,
    CategoryTypeError,
    RegistrationError,
    InactiveUserError,
    OCRUnavailableError
)

__all__ = [
    'TransactionType',
    'BudgetPeriod',
    'AllowedType',
    'AlertKind',
    'TransactionDraft',
    'Budget',
    'PeriodWindow',
    'TransactionAmount',
    'BudgetEvaluation',
    'BudgetStatus',
    'ReportQuerySpec',
    'MonthlySummary',
    'OutcomeRecord',
    'IncomingMessage',
    'SaveResult',
    'PendingConfirmation',
    'LedgerBotError',
    'FormatError',
    'InvalidDateError',
    'InvalidRangeError',
    'BudgetEvaluationError',
    'StorageError',
    'CategoryTypeError',
    'RegistrationError',
    'InactiveUserError',
    'OCRUnavailableError'
]
