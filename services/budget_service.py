"""
Budget evaluation for newly saved transactions
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from models.exceptions import BudgetEvaluationError, StorageError
from models.schemas import (
    AlertKind,
    Budget,
    BudgetEvaluation,
    BudgetPeriod,
    BudgetStatus,
    PeriodWindow,
    TransactionAmount,
    TransactionType
)
from utils.helpers import format_amount


WARNING_THRESHOLD = Decimal(90)


def _utc_midnight(instant: datetime) -> datetime:
    instant = instant.astimezone(timezone.utc)
    return datetime(instant.year, instant.month, instant.day, tzinfo=timezone.utc)


def daily_window(instant: datetime) -> PeriodWindow:
    """UTC day containing the instant"""
    start = _utc_midnight(instant)
    return PeriodWindow(start=start, end=start + timedelta(days=1))


def weekly_window(instant: datetime) -> PeriodWindow:
    """Seven days starting on the Sunday at or before the instant (UTC)"""
    midnight = _utc_midnight(instant)
    days_since_sunday = (midnight.weekday() + 1) % 7
    start = midnight - timedelta(days=days_since_sunday)
    return PeriodWindow(start=start, end=start + timedelta(days=7))


def monthly_window(instant: datetime) -> PeriodWindow:
    """First of the month to the first of the next month (UTC)"""
    instant = instant.astimezone(timezone.utc)
    start = datetime(instant.year, instant.month, 1, tzinfo=timezone.utc)
    if instant.month == 12:
        end = datetime(instant.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(instant.year, instant.month + 1, 1, tzinfo=timezone.utc)
    return PeriodWindow(start=start, end=end)


def yearly_window(instant: datetime) -> PeriodWindow:
    """Jan 1 to Jan 1 of the next year (UTC)"""
    instant = instant.astimezone(timezone.utc)
    return PeriodWindow(
        start=datetime(instant.year, 1, 1, tzinfo=timezone.utc),
        end=datetime(instant.year + 1, 1, 1, tzinfo=timezone.utc)
    )


PERIOD_WINDOWS: Dict[BudgetPeriod, Callable[[datetime], PeriodWindow]] = {
    BudgetPeriod.DAILY: daily_window,
    BudgetPeriod.WEEKLY: weekly_window,
    BudgetPeriod.MONTHLY: monthly_window,
    BudgetPeriod.YEARLY: yearly_window,
}


def budget_applies(budget: Budget, instant: datetime) -> bool:
    """Whether the instant falls inside the budget's own [start, end) bounds"""
    if instant < budget.start_date:
        return False
    return budget.end_date is None or instant < budget.end_date


def clamp_window(window: PeriodWindow, budget: Budget) -> PeriodWindow:
    """Clamp a window to the budget's [start_date, end_date) bounds"""
    start = max(window.start, budget.start_date)
    end = window.end
    if budget.end_date is not None and end > budget.end_date:
        end = budget.end_date
    return PeriodWindow(start=start, end=end)


def budget_window(budget: Budget, instant: datetime) -> Optional[PeriodWindow]:
    """Clamped period window of a budget for one transaction, None if it does not apply"""
    if not budget_applies(budget, instant):
        return None
    return clamp_window(PERIOD_WINDOWS[budget.period](instant), budget)


def net_spend(transactions: Iterable[TransactionAmount]) -> Decimal:
    """Outcome total minus income total"""
    total_outcome = Decimal(0)
    total_income = Decimal(0)
    for t in transactions:
        if t.type == TransactionType.OUTCOME:
            total_outcome += t.amount
        elif t.type == TransactionType.INCOME:
            total_income += t.amount
    return total_outcome - total_income


def evaluate_budget(
    budget: Budget,
    window: PeriodWindow,
    transactions: Iterable[TransactionAmount]
) -> BudgetEvaluation:
    """Compare net spend inside the window against the budget amount"""
    spent = net_spend(transactions)
    # negative net spend reports 0% while remaining keeps the unclamped value
    percentage = spent / budget.amount * 100 if spent > 0 else Decimal(0)

    alert_kind = None
    if spent > budget.amount:
        alert_kind = AlertKind.EXCEEDED
    elif percentage >= WARNING_THRESHOLD and spent > 0:
        alert_kind = AlertKind.WARNING

    return BudgetEvaluation(
        budget=budget,
        window=window,
        net_spent=spent,
        percentage_used=percentage,
        remaining=budget.amount - spent,
        alert_kind=alert_kind
    )


def format_progress(evaluation: BudgetEvaluation) -> str:
    budget = evaluation.budget
    currency = budget.currency
    period_label = budget.period.value.capitalize()
    return (
        f"💰 <b>Budget Progress ({period_label})</b>\n"
        f"Net Spent: {format_amount(evaluation.display_spent)} / {format_amount(budget.amount)} {currency} "
        f"({evaluation.percentage_used:.1f}%)\n"
        f"Remaining: {format_amount(evaluation.remaining)} {currency}"
    )


def format_alert(evaluation: BudgetEvaluation) -> Optional[str]:
    budget = evaluation.budget
    currency = budget.currency

    if evaluation.alert_kind == AlertKind.EXCEEDED:
        return (
            f"⚠️ <b>Budget Exceeded!</b>\n"
            f"Category budget exceeded by {format_amount(evaluation.exceeded_by)} {currency}\n"
            f"Budget: {format_amount(budget.amount)} {currency}\n"
            f"Net Spent: {format_amount(evaluation.display_spent)} {currency}"
        )

    if evaluation.alert_kind == AlertKind.WARNING:
        return (
            f"⚠️ <b>Budget Warning</b>\n"
            f"{evaluation.percentage_used:.1f}% of budget used\n"
            f"Budget: {format_amount(budget.amount)} {currency}\n"
            f"Net Spent: {format_amount(evaluation.display_spent)} {currency}\n"
            f"Remaining: {format_amount(evaluation.remaining)} {currency}"
        )

    return None


def build_status(evaluations: Iterable[BudgetEvaluation]) -> BudgetStatus:
    """Progress and alert lines, in budget order"""
    status = BudgetStatus()
    for evaluation in evaluations:
        status.progress_lines.append(format_progress(evaluation))
        alert = format_alert(evaluation)
        if alert:
            status.alert_lines.append(alert)
    return status


class BudgetService:
    """Checks the budgets touched by a saved transaction"""

    def __init__(self, repository):
        self.repository = repository

    async def evaluate(self, user_id: str, category_id: int, occurred_at: datetime) -> List[BudgetEvaluation]:
        """Evaluate every budget of (user, category) active at occurred_at"""
        try:
            budgets = await self.repository.fetch_budgets(user_id, category_id, occurred_at)
        except StorageError as e:
            logger.error(f"❌ Error fetching budgets: {e}")
            raise BudgetEvaluationError(f"Could not fetch budgets: {e}") from e

        evaluations = []
        for budget in budgets:
            window = budget_window(budget, occurred_at)
            if window is None:
                continue

            try:
                transactions = await self.repository.fetch_transactions_in_window(
                    user_id, category_id, window.start, window.end
                )
            except StorageError as e:
                logger.error(f"❌ Error fetching transactions for budget {budget.id}: {e}")
                continue

            evaluations.append(evaluate_budget(budget, window, transactions))

        return evaluations

    async def check_budget_status(
        self,
        user_id: str,
        category_id: int,
        amount: Decimal,
        occurred_at: datetime
    ) -> Optional[BudgetStatus]:
        """Budget progress/alert text for a saved transaction, None when no budget applies"""
        evaluations = await self.evaluate(user_id, category_id, occurred_at)
        if not evaluations:
            return None

        logger.info(f"💰 {len(evaluations)} budget(s) checked for a transaction of {amount}")
        status = build_status(evaluations)
        return None if status.is_empty else status
