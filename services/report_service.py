"""
Outcome and monthly summary reports
"""

from decimal import Decimal
from html import escape
from typing import Dict, Iterable, List, Sequence

from loguru import logger

from models.schemas import (
    MonthlySummary,
    OutcomeRecord,
    ReportQuerySpec,
    TransactionAmount,
    TransactionType
)
from utils.helpers import format_amount, format_currency, format_jakarta_day_month, get_month_name


RECENT_LIMIT = 5


def format_outcome_report(outcomes: Sequence[OutcomeRecord], spec: ReportQuerySpec) -> str:
    """Category breakdown and recent outcomes; outcomes arrive newest first"""
    period = spec.label
    if not outcomes:
        return f"📊 No outcomes found for {period}"

    total = sum((t.amount for t in outcomes), Decimal(0))

    by_category: Dict[str, dict] = {}
    for t in outcomes:
        name = escape(t.category_name or "Unknown")
        group = by_category.setdefault(name, {"amount": Decimal(0), "count": 0})
        group["amount"] += t.amount
        group["count"] += 1

    report = f"📊 <b>Outcome Report - {period}</b>\n\n"
    report += f"💰 <b>Total: {format_amount(total)} IDR</b>\n"
    report += f"📝 <b>Transactions: {len(outcomes)}</b>\n\n"

    report += "<b>By Category:</b>\n"
    for category, data in sorted(by_category.items(), key=lambda x: x[1]["amount"], reverse=True):
        percentage = data["amount"] / total * 100 if total else Decimal(0)
        report += (
            f"• {category}: {format_amount(data['amount'])} IDR "
            f"({percentage:.1f}%) - {data['count']}x\n"
        )

    report += "\n<b>Recent Transactions:</b>\n"
    for t in outcomes[:RECENT_LIMIT]:
        category = escape(t.category_name or "Unknown")
        account = escape(t.account_name or "Unknown")
        report += f"• {format_jakarta_day_month(t.occurred_at)} - {format_amount(t.amount)} IDR ({category}/{account})"
        if t.description:
            report += f" - {escape(t.description)}"
        report += "\n"

    if len(outcomes) > RECENT_LIMIT:
        report += f"... and {len(outcomes) - RECENT_LIMIT} more transactions\n"

    return report


def build_monthly_summary(year: int, month: int, rows: Iterable[TransactionAmount]) -> MonthlySummary:
    """Aggregate the transactions of one month"""
    total_income = Decimal(0)
    total_outcome = Decimal(0)
    count = 0
    for row in rows:
        count += 1
        if row.type == TransactionType.INCOME:
            total_income += row.amount
        elif row.type == TransactionType.OUTCOME:
            total_outcome += row.amount

    return MonthlySummary(
        year=year,
        month=month,
        total_income=total_income,
        total_outcome=total_outcome,
        transaction_count=count
    )


def format_summary_report(summaries: Sequence[MonthlySummary], currency: str = "IDR") -> str:
    """Income, outcome and surplus/deficit per month, plus a total for ranges"""
    if not summaries:
        return "📊 No data found"

    blocks = []
    for summary in summaries:
        block = f"<b>{get_month_name(summary.month)} {summary.year}</b>\n"
        block += f"Income: {format_currency(summary.total_income, currency)}\n"
        block += f"Outcome: {format_currency(summary.total_outcome, currency)}\n"
        if summary.transaction_count > 0:
            label = "Surplus" if summary.balance >= 0 else "Deficit"
            block += f"{label}: {format_currency(abs(summary.balance), currency)}\n"
        blocks.append(block)

    report = "📊 <b>Monthly Summary</b>\n\n" + "\n".join(blocks)

    if len(summaries) > 1:
        total_income = sum((s.total_income for s in summaries), Decimal(0))
        total_outcome = sum((s.total_outcome for s in summaries), Decimal(0))
        total_balance = total_income - total_outcome
        label = "Total Surplus" if total_balance >= 0 else "Total Deficit"

        report += "\n<b>📈 Total Summary</b>\n"
        report += f"Total Income: {format_currency(total_income, currency)}\n"
        report += f"Total Outcome: {format_currency(total_outcome, currency)}\n"
        report += f"{label}: {format_currency(abs(total_balance), currency)}"

    return report


class ReportService:
    """Queries report data and renders it"""

    def __init__(self, repository, currency: str = "IDR"):
        self.repository = repository
        self.currency = currency

    async def outcome_report(self, spec: ReportQuerySpec) -> str:
        outcomes = await self.repository.query_outcomes(spec)
        logger.info(f"📊 Outcome report {spec.label}: {len(outcomes)} transactions")
        return format_outcome_report(outcomes, spec)

    async def monthly_summaries(self, months: Iterable[ReportQuerySpec]) -> List[MonthlySummary]:
        summaries = []
        for spec in months:
            rows = await self.repository.query_month_transactions(spec)
            summaries.append(build_monthly_summary(spec.year, spec.month, rows))
        return summaries

    async def summary_report(self, months: Iterable[ReportQuerySpec]) -> str:
        summaries = await self.monthly_summaries(months)
        logger.info(f"📊 Summary report for {len(summaries)} month(s)")
        return format_summary_report(summaries, self.currency)
