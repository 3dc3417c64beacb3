"""
Budget evaluation tests
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from models.exceptions import BudgetEvaluationError, StorageError
from models.schemas import (
    AlertKind,
    Budget,
    BudgetPeriod,
    BudgetStatus,
    TransactionAmount,
    TransactionDraft,
    TransactionType
)
from services.budget_service import (
    BudgetService,
    budget_window,
    clamp_window,
    daily_window,
    evaluate_budget,
    format_alert,
    format_progress,
    monthly_window,
    weekly_window,
    yearly_window
)
from services.ledger_service import LedgerService


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def monthly_budget(amount="100000", **kwargs):
    values = dict(
        id=1,
        category_id=1,
        amount=Decimal(amount),
        period=BudgetPeriod.MONTHLY,
        start_date=utc(2025, 1, 1)
    )
    values.update(kwargs)
    return Budget(**values)


def outcome(amount):
    return TransactionAmount(type=TransactionType.OUTCOME, amount=Decimal(amount))


def income(amount):
    return TransactionAmount(type=TransactionType.INCOME, amount=Decimal(amount))


class TestPeriodWindows:
    """Daily, weekly, monthly and yearly windows"""

    def test_daily(self):
        window = daily_window(utc(2025, 8, 29, 4, 30))

        assert window.start == utc(2025, 8, 29)
        assert window.end == utc(2025, 8, 30)

    def test_weekly_starts_on_sunday(self):
        # Wednesday
        window = weekly_window(utc(2025, 8, 27, 10, 0))

        assert window.start == utc(2025, 8, 24)
        assert window.end == utc(2025, 8, 31)

    def test_weekly_on_sunday(self):
        window = weekly_window(utc(2025, 8, 24, 23, 59))

        assert window.start == utc(2025, 8, 24)

    def test_monthly_december(self):
        window = monthly_window(utc(2024, 12, 15))

        assert window.start == utc(2024, 12, 1)
        assert window.end == utc(2025, 1, 1)

    def test_yearly(self):
        window = yearly_window(utc(2025, 6, 1))

        assert window.start == utc(2025, 1, 1)
        assert window.end == utc(2026, 1, 1)

    def test_clamped_to_budget_bounds(self):
        budget = monthly_budget(start_date=utc(2025, 8, 10), end_date=utc(2025, 8, 20))
        window = clamp_window(monthly_window(utc(2025, 8, 15)), budget)

        assert window.start == utc(2025, 8, 10)
        assert window.end == utc(2025, 8, 20)

    def test_budget_outside_bounds(self):
        budget = monthly_budget(start_date=utc(2025, 8, 10), end_date=utc(2025, 8, 20))

        assert budget_window(budget, utc(2025, 8, 5)) is None
        assert budget_window(budget, utc(2025, 8, 20)) is None
        assert budget_window(budget, utc(2025, 8, 15)) is not None


class TestEvaluateBudget:
    """Thresholds and rendering"""

    def test_warning_at_95_percent(self):
        budget = monthly_budget()
        evaluation = evaluate_budget(budget, monthly_window(utc(2025, 8, 1)), [outcome("95000")])

        assert evaluation.percentage_used == Decimal(95)
        assert evaluation.alert_kind == AlertKind.WARNING
        assert evaluation.remaining == Decimal("5000")
        assert format_progress(evaluation) == (
            "💰 <b>Budget Progress (Monthly)</b>\n"
            "Net Spent: 95.000 / 100.000 IDR (95.0%)\n"
            "Remaining: 5.000 IDR"
        )
        assert "95.0% of budget used" in format_alert(evaluation)

    def test_exceeded(self):
        budget = monthly_budget()
        evaluation = evaluate_budget(budget, monthly_window(utc(2025, 8, 1)), [outcome("70000"), outcome("50000")])

        assert evaluation.alert_kind == AlertKind.EXCEEDED
        assert evaluation.exceeded_by == Decimal("20000")
        alert = format_alert(evaluation)
        assert alert.startswith("⚠️ <b>Budget Exceeded!</b>")
        assert "Category budget exceeded by 20.000 IDR" in alert

    def test_exactly_at_budget_is_a_warning(self):
        evaluation = evaluate_budget(monthly_budget(), monthly_window(utc(2025, 8, 1)), [outcome("100000")])

        assert evaluation.alert_kind == AlertKind.WARNING

    def test_below_threshold_has_no_alert(self):
        evaluation = evaluate_budget(monthly_budget(), monthly_window(utc(2025, 8, 1)), [outcome("50000")])

        assert evaluation.alert_kind is None
        assert format_alert(evaluation) is None

    def test_income_offsets_spend(self):
        evaluation = evaluate_budget(
            monthly_budget(), monthly_window(utc(2025, 8, 1)), [outcome("95000"), income("10000")]
        )

        assert evaluation.net_spent == Decimal("85000")
        assert evaluation.alert_kind is None

    def test_negative_net_spend(self):
        evaluation = evaluate_budget(monthly_budget(), monthly_window(utc(2025, 8, 1)), [income("50000")])

        assert evaluation.percentage_used == Decimal(0)
        assert evaluation.display_spent == Decimal(0)
        assert evaluation.remaining == Decimal("150000")
        assert evaluation.alert_kind is None
        assert "Net Spent: 0 / 100.000 IDR (0.0%)" in format_progress(evaluation)
        assert "Remaining: 150.000 IDR" in format_progress(evaluation)


class TestBudgetService:
    """Budget check against the repository"""

    @pytest.fixture
    def repository(self):
        repository = MagicMock()
        repository.fetch_budgets = AsyncMock(return_value=[monthly_budget()])
        repository.fetch_transactions_in_window = AsyncMock(return_value=[outcome("95000")])
        return repository

    @pytest.mark.asyncio
    async def test_status_for_matching_budget(self, repository):
        service = BudgetService(repository)

        status = await service.check_budget_status("user-1", 1, Decimal("95000"), utc(2025, 8, 29, 4, 30))

        assert "Budget Progress (Monthly)" in status.progress
        assert "Budget Warning" in status.alerts
        repository.fetch_transactions_in_window.assert_awaited_once_with(
            "user-1", 1, utc(2025, 8, 1), utc(2025, 9, 1)
        )

    @pytest.mark.asyncio
    async def test_no_budgets(self, repository):
        repository.fetch_budgets.return_value = []
        service = BudgetService(repository)

        assert await service.check_budget_status("user-1", 1, Decimal("1"), utc(2025, 8, 29)) is None

    @pytest.mark.asyncio
    async def test_budget_fetch_failure(self, repository):
        repository.fetch_budgets.side_effect = StorageError("down")
        service = BudgetService(repository)

        with pytest.raises(BudgetEvaluationError):
            await service.check_budget_status("user-1", 1, Decimal("1"), utc(2025, 8, 29))

    @pytest.mark.asyncio
    async def test_transaction_fetch_failure_skips_budget(self, repository):
        repository.fetch_budgets.return_value = [monthly_budget(id=1), monthly_budget(id=2, amount="200000")]
        repository.fetch_transactions_in_window.side_effect = [StorageError("down"), [outcome("10000")]]
        service = BudgetService(repository)

        status = await service.check_budget_status("user-1", 1, Decimal("1"), utc(2025, 8, 29))

        assert len(status.progress_lines) == 1
        assert "200.000" in status.progress


class TestLedgerService:
    """Save flow"""

    @pytest.fixture
    def repository(self):
        repository = MagicMock()
        repository.get_or_create_category = AsyncMock(return_value=3)
        repository.get_or_create_account = AsyncMock(return_value=4)
        repository.insert_transaction = AsyncMock(return_value=10)
        return repository

    def draft(self, transaction_type=TransactionType.OUTCOME):
        return TransactionDraft(
            type=transaction_type,
            amount=Decimal("75000"),
            category="Food",
            account="BCA",
            occurred_at=utc(2025, 8, 29, 4, 30)
        )

    @pytest.mark.asyncio
    async def test_record_with_budget(self, repository):
        budget_service = MagicMock()
        budget_service.check_budget_status = AsyncMock(return_value=BudgetStatus(progress_lines=["progress"]))
        ledger = LedgerService(repository, budget_service)

        result = await ledger.record(self.draft(), "user-1")

        assert result.transaction_id == 10
        assert result.budget_status.progress == "progress"
        repository.insert_transaction.assert_awaited_once_with(self.draft(), 3, 4, "user-1")
        budget_service.check_budget_status.assert_awaited_once_with(
            "user-1", 3, Decimal("75000"), utc(2025, 8, 29, 4, 30)
        )

    @pytest.mark.asyncio
    async def test_budget_failure_does_not_fail_save(self, repository):
        budget_service = MagicMock()
        budget_service.check_budget_status = AsyncMock(side_effect=BudgetEvaluationError("down"))
        ledger = LedgerService(repository, budget_service)

        result = await ledger.record(self.draft(), "user-1")

        assert result.transaction_id == 10
        assert result.budget_status is None

    @pytest.mark.asyncio
    async def test_no_budget_check_for_income_or_anonymous(self, repository):
        budget_service = MagicMock()
        budget_service.check_budget_status = AsyncMock()
        ledger = LedgerService(repository, budget_service)

        await ledger.record(self.draft(TransactionType.INCOME), "user-1")
        await ledger.record(self.draft(), None)

        budget_service.check_budget_status.assert_not_awaited()
