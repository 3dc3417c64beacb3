"""
Services package - Business logic and external integrations
"""

from .database_service import DatabaseService
from .budget_service import BudgetService
from .report_service import ReportService
from .ledger_service import LedgerService
from .user_service import UserService
from .ocr_service import OCRService
from .pending_store import PendingConfirmationStore
from .message_parser import parse_message
from .date_resolver import parse_jakarta_local, parse_outcome_range, parse_summary_range

__all__ = [
    'DatabaseService',
    'BudgetService',
    'ReportService',
    'LedgerService',
    'UserService',
    'OCRService',
    'PendingConfirmationStore',
    'parse_message',
    'parse_jakarta_local',
    'parse_outcome_range',
    'parse_summary_range'
]
