"""
Transaction save flow: resolve category and account, insert, check budgets
"""

from typing import Optional

from loguru import logger

from models.exceptions import BudgetEvaluationError
from models.schemas import SaveResult, TransactionDraft, TransactionType
from services.budget_service import BudgetService


class LedgerService:
    """Saves parsed transactions"""

    def __init__(self, repository, budget_service: Optional[BudgetService] = None):
        self.repository = repository
        self.budget_service = budget_service or BudgetService(repository)

    async def record(self, draft: TransactionDraft, user_id: Optional[str] = None) -> SaveResult:
        """Persist a draft; budget problems never fail the save"""
        category_id = await self.repository.get_or_create_category(draft.category)
        account_id = await self.repository.get_or_create_account(draft.account)
        transaction_id = await self.repository.insert_transaction(draft, category_id, account_id, user_id)
        logger.info(f"✅ Transaction saved: ID {transaction_id} ({draft.type.value} {draft.amount})")

        budget_status = None
        if user_id and draft.type == TransactionType.OUTCOME:
            try:
                budget_status = await self.budget_service.check_budget_status(
                    user_id, category_id, draft.amount, draft.occurred_at
                )
            except BudgetEvaluationError as e:
                logger.warning(f"⚠️ Budget check skipped for transaction {transaction_id}: {e}")

        return SaveResult(transaction_id=transaction_id, draft=draft, budget_status=budget_status)
