"""
Pydantic schemas for ledger data
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TransactionType(str, Enum):
    """Transaction direction"""
    INCOME = "income"
    OUTCOME = "outcome"


class BudgetPeriod(str, Enum):
    """Budget period"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AllowedType(str, Enum):
    """Transaction types a category accepts"""
    INCOME = "income"
    OUTCOME = "outcome"
    BOTH = "both"


class AlertKind(str, Enum):
    """Budget alert severity"""
    WARNING = "warning"
    EXCEEDED = "exceeded"


class TransactionDraft(BaseModel):
    """Parsed, unpersisted transaction"""
    model_config = ConfigDict(frozen=True)

    type: TransactionType
    amount: Decimal = Field(..., ge=0, description="Transaction amount")
    category: str = Field(..., min_length=1)
    account: str = Field(..., min_length=1)
    occurred_at: datetime = Field(..., description="Absolute UTC instant")
    description: Optional[str] = None

    @field_validator('amount')
    def validate_amount(cls, v):
        if not v.is_finite():
            raise ValueError("amount must be finite")
        return v

    @field_validator('occurred_at')
    def validate_occurred_at(cls, v):
        return as_utc(v)


class Budget(BaseModel):
    """Budget configured for a user and category"""
    id: Optional[int] = None
    category_id: int
    amount: Decimal = Field(..., gt=0)
    period: BudgetPeriod
    currency: str = "IDR"
    start_date: datetime
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date')
    def validate_dates(cls, v):
        return as_utc(v)


class PeriodWindow(BaseModel):
    """Concrete [start, end) range a budget is evaluated against"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class TransactionAmount(BaseModel):
    """Type and amount of a stored transaction"""
    type: TransactionType
    amount: Decimal


class BudgetEvaluation(BaseModel):
    """Numeric outcome of one budget check"""
    budget: Budget
    window: PeriodWindow
    net_spent: Decimal
    percentage_used: Decimal
    remaining: Decimal
    alert_kind: Optional[AlertKind] = None

    @property
    def display_spent(self) -> Decimal:
        return max(Decimal(0), self.net_spent)

    @property
    def exceeded_by(self) -> Decimal:
        return self.net_spent - self.budget.amount


class BudgetStatus(BaseModel):
    """Budget progress and alert text for one saved transaction"""
    progress_lines: List[str] = Field(default_factory=list)
    alert_lines: List[str] = Field(default_factory=list)

    @property
    def progress(self) -> Optional[str]:
        return "\n\n".join(self.progress_lines) if self.progress_lines else None

    @property
    def alerts(self) -> Optional[str]:
        return "\n\n".join(self.alert_lines) if self.alert_lines else None

    @property
    def is_empty(self) -> bool:
        return not self.progress_lines and not self.alert_lines


class ReportQuerySpec(BaseModel):
    """A single month, or a full year when month is None"""
    model_config = ConfigDict(frozen=True)

    year: int
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @property
    def is_full_year(self) -> bool:
        return self.month is None

    @property
    def label(self) -> str:
        if self.is_full_year:
            return f"{self.year}"
        return f"{self.month:02d}/{self.year}"

    def window(self) -> PeriodWindow:
        """UTC query window for this period"""
        if self.is_full_year:
            start = datetime(self.year, 1, 1, tzinfo=timezone.utc)
            end = datetime(self.year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            start = datetime(self.year, self.month, 1, tzinfo=timezone.utc)
            if self.month == 12:
                end = datetime(self.year + 1, 1, 1, tzinfo=timezone.utc)
            else:
                end = datetime(self.year, self.month + 1, 1, tzinfo=timezone.utc)
        return PeriodWindow(start=start, end=end)


class MonthlySummary(BaseModel):
    """Income and outcome totals of one month"""
    year: int
    month: int = Field(..., ge=1, le=12)
    total_income: Decimal = Decimal(0)
    total_outcome: Decimal = Decimal(0)
    transaction_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_outcome


class OutcomeRecord(BaseModel):
    """Outcome row shown in reports"""
    id: int
    amount: Decimal
    occurred_at: datetime
    description: Optional[str] = None
    category_name: Optional[str] = None
    account_name: Optional[str] = None

    @field_validator('occurred_at')
    def validate_occurred_at(cls, v):
        return as_utc(v)


class IncomingMessage(BaseModel):
    """Chat event, independent of the transport"""
    chat_id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    text: Optional[str] = None
    photo: Optional[bytes] = None
    photo_file_id: Optional[str] = None


class SaveResult(BaseModel):
    """Saved transaction and its budget info"""
    transaction_id: int
    draft: TransactionDraft
    budget_status: Optional[BudgetStatus] = None


class PendingConfirmation(BaseModel):
    """OCR text waiting for the user's confirmation"""
    text: str
    created_at: datetime
    image_file_id: Optional[str] = None

    def is_stale(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at > ttl
