"""
Ledger storage on top of SQLAlchemy
Single source for transactions, budgets and users
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from loguru import logger

from database.models import Account, AppUser, BudgetRecord, Category, TelegramUser, Transaction
from database.sqlite_db import AsyncSessionLocal
from models.exceptions import CategoryTypeError, StorageError
from models.schemas import (
    AllowedType,
    Budget,
    OutcomeRecord,
    ReportQuerySpec,
    TransactionAmount,
    TransactionDraft,
    TransactionType
)


class DatabaseService:
    """Repository for the ledger tables"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None, currency: str = "IDR"):
        self.session_factory = session_factory or AsyncSessionLocal
        self.currency = currency

    async def find_category_id(self, name: str, case_insensitive: bool = True) -> Optional[int]:
        """Find a category by name"""
        try:
            async with self.session_factory() as db:
                condition = func.lower(Category.name) == name.lower() if case_insensitive else Category.name == name
                result = await db.execute(select(Category.id).where(condition).limit(1))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error finding category '{name}': {e}")
            raise StorageError(f"Could not look up category {name}") from e

    async def find_account_id(self, name: str) -> Optional[int]:
        """Find an account by exact name"""
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Account.id).where(Account.name == name))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error finding account '{name}': {e}")
            raise StorageError(f"Could not look up account {name}") from e

    async def create_category(self, name: str, allowed_type: AllowedType = AllowedType.BOTH) -> int:
        try:
            async with self.session_factory() as db:
                category = Category(name=name, allowed_type=AllowedType(allowed_type).value)
                db.add(category)
                await db.flush()
                new_id = category.id
                await db.commit()
                logger.info(f"✅ Category created: {name}")
                return new_id
        except SQLAlchemyError as e:
            logger.error(f"❌ Error creating category '{name}': {e}")
            raise StorageError(f"Could not create category {name}") from e

    async def create_account(self, name: str) -> int:
        try:
            async with self.session_factory() as db:
                account = Account(name=name)
                db.add(account)
                await db.flush()
                new_id = account.id
                await db.commit()
                logger.info(f"✅ Account created: {name}")
                return new_id
        except SQLAlchemyError as e:
            logger.error(f"❌ Error creating account '{name}': {e}")
            raise StorageError(f"Could not create account {name}") from e

    async def get_or_create_category(self, name: str) -> int:
        """Existing category id (case-insensitive), or a new category allowing both types"""
        category_id = await self.find_category_id(name, case_insensitive=True)
        if category_id is not None:
            return category_id
        return await self.create_category(name, AllowedType.BOTH)

    async def get_or_create_account(self, name: str) -> int:
        account_id = await self.find_account_id(name)
        if account_id is not None:
            return account_id
        return await self.create_account(name)

    async def insert_transaction(
        self,
        draft: TransactionDraft,
        category_id: int,
        account_id: int,
        user_id: Optional[str] = None
    ) -> int:
        """Persist a draft and return its id"""
        try:
            async with self.session_factory() as db:
                category = await db.get(Category, category_id)
                if category is None:
                    raise StorageError(f"Category {category_id} does not exist")
                if category.allowed_type not in (AllowedType.BOTH.value, draft.type.value):
                    raise CategoryTypeError(
                        f"Category {category.name} does not allow {draft.type.value} transactions"
                    )

                transaction = Transaction(
                    type=draft.type.value,
                    amount=draft.amount,
                    currency=self.currency,
                    category_id=category_id,
                    account_id=account_id,
                    occurred_at=draft.occurred_at,
                    description=draft.description,
                    user_id=user_id
                )
                db.add(transaction)
                await db.flush()
                new_id = transaction.id
                await db.commit()
                return new_id

        except SQLAlchemyError as e:
            logger.error(f"❌ Error saving transaction: {e}")
            raise StorageError("Could not save transaction") from e

    async def fetch_budgets(self, user_id: str, category_id: int, as_of: datetime) -> List[Budget]:
        """Budgets of (user, category) active at as_of, in creation order"""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(BudgetRecord)
                    .where(
                        and_(
                            BudgetRecord.user_id == user_id,
                            BudgetRecord.category_id == category_id,
                            BudgetRecord.start_date <= as_of,
                            or_(BudgetRecord.end_date.is_(None), BudgetRecord.end_date >= as_of)
                        )
                    )
                    .order_by(BudgetRecord.id)
                )

                return [
                    Budget(
                        id=record.id,
                        category_id=record.category_id,
                        amount=record.amount,
                        period=record.period,
                        currency=record.currency,
                        start_date=record.start_date,
                        end_date=record.end_date
                    )
                    for record in result.scalars()
                ]

        except SQLAlchemyError as e:
            logger.error(f"❌ Error fetching budgets: {e}")
            raise StorageError("Could not fetch budgets") from e

    async def fetch_transactions_in_window(
        self,
        user_id: Optional[str],
        category_id: Optional[int],
        start: datetime,
        end: datetime
    ) -> List[TransactionAmount]:
        """Type and amount of live transactions with start <= occurred_at < end"""
        conditions = [
            Transaction.occurred_at >= start,
            Transaction.occurred_at < end,
            Transaction.deleted_at.is_(None)
        ]
        if user_id is not None:
            conditions.append(Transaction.user_id == user_id)
        if category_id is not None:
            conditions.append(Transaction.category_id == category_id)

        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Transaction.type, Transaction.amount).where(and_(*conditions))
                )
                return [TransactionAmount(type=row.type, amount=row.amount) for row in result]

        except SQLAlchemyError as e:
            logger.error(f"❌ Error fetching transactions: {e}")
            raise StorageError("Could not fetch transactions") from e

    async def query_outcomes(self, spec: ReportQuerySpec) -> List[OutcomeRecord]:
        """Outcomes of a month or year, newest first"""
        window = spec.window()
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Transaction)
                    .where(
                        and_(
                            Transaction.type == TransactionType.OUTCOME.value,
                            Transaction.occurred_at >= window.start,
                            Transaction.occurred_at < window.end,
                            Transaction.deleted_at.is_(None)
                        )
                    )
                    .order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
                )

                return [
                    OutcomeRecord(
                        id=t.id,
                        amount=t.amount,
                        occurred_at=t.occurred_at,
                        description=t.description,
                        category_name=t.category.name if t.category else None,
                        account_name=t.account.name if t.account else None
                    )
                    for t in result.unique().scalars()
                ]

        except SQLAlchemyError as e:
            logger.error(f"❌ Error querying outcomes for {spec.label}: {e}")
            raise StorageError(f"Could not load outcomes for {spec.label}") from e

    async def query_month_transactions(self, spec: ReportQuerySpec) -> List[TransactionAmount]:
        """All live transactions of one month"""
        window = spec.window()
        return await self.fetch_transactions_in_window(None, None, window.start, window.end)

    async def get_app_user(self, user_id: str) -> Optional[AppUser]:
        try:
            async with self.session_factory() as db:
                return await db.get(AppUser, user_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Error loading user {user_id}: {e}")
            raise StorageError("Could not load user") from e

    async def get_telegram_user(self, telegram_user_id: int) -> Optional[TelegramUser]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(TelegramUser).where(TelegramUser.telegram_user_id == telegram_user_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error loading Telegram user {telegram_user_id}: {e}")
            raise StorageError("Could not load Telegram user") from e

    async def save_telegram_user(self, telegram_user_id: int, **fields) -> bool:
        """Update the Telegram link with the given fields, creating it when missing

        Returns True when a new link was created.
        """
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(TelegramUser).where(TelegramUser.telegram_user_id == telegram_user_id)
                )
                link = result.scalar_one_or_none()
                created = link is None
                if created:
                    link = TelegramUser(telegram_user_id=telegram_user_id)
                    db.add(link)

                for key, value in fields.items():
                    setattr(link, key, value)

                await db.commit()
                return created

        except SQLAlchemyError as e:
            logger.error(f"❌ Error saving Telegram user {telegram_user_id}: {e}")
            raise StorageError("Could not save Telegram user") from e
