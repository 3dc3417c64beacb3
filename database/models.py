"""
SQLAlchemy models for the ledger database
"""

from datetime import timezone

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Numeric, Text, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC datetimes"""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Category(Base):
    """Transaction category"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, comment="Normalized category name")
    allowed_type = Column(String(10), nullable=False, default="both", comment="income, outcome or both")
    created_at = Column(UTCDateTime, default=func.now())

    __table_args__ = (
        CheckConstraint("allowed_type IN ('income', 'outcome', 'both')", name="ck_category_allowed_type"),
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', allowed_type='{self.allowed_type}')>"


class Account(Base):
    """Bank account or wallet"""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(UTCDateTime, default=func.now())

    def __repr__(self):
        return f"<Account(id={self.id}, name='{self.name}')>"


class Transaction(Base):
    """Income or outcome transaction"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)

    type = Column(String(10), nullable=False, index=True, comment="income or outcome")
    amount = Column(Numeric(15, 2), nullable=False, comment="Transaction amount")
    currency = Column(String(3), nullable=False, default="IDR")
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False, index=True)
    occurred_at = Column(UTCDateTime, nullable=False, index=True, comment="UTC instant of the transaction")
    description = Column(Text, nullable=True)
    user_id = Column(String(64), nullable=True, index=True, comment="Internal ledger user")

    created_at = Column(UTCDateTime, default=func.now())
    deleted_at = Column(UTCDateTime, nullable=True, comment="Soft delete marker")

    category = relationship("Category", lazy="joined")
    account = relationship("Account", lazy="joined")

    __table_args__ = (
        CheckConstraint("type IN ('income', 'outcome')", name="ck_transaction_type"),
        CheckConstraint("amount >= 0", name="ck_transaction_amount"),
    )

    def __repr__(self):
        return f"<Transaction(id={self.id}, type='{self.type}', amount={self.amount})>"


class BudgetRecord(Base):
    """Spending budget of a user for one category"""
    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    period = Column(String(10), nullable=False, comment="daily, weekly, monthly or yearly")
    currency = Column(String(3), nullable=False, default="IDR")
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, default=func.now())

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_budget_amount"),
        CheckConstraint("period IN ('daily', 'weekly', 'monthly', 'yearly')", name="ck_budget_period"),
    )

    def __repr__(self):
        return f"<BudgetRecord(id={self.id}, amount={self.amount}, period='{self.period}')>"


class AppUser(Base):
    """Ledger user that Telegram accounts link to"""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True)
    created_at = Column(UTCDateTime, default=func.now())

    def __repr__(self):
        return f"<AppUser(id={self.id})>"


class TelegramUser(Base):
    """Link between a Telegram account and a ledger user"""
    __tablename__ = "telegram_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    telegram_user_id = Column(BigInteger, unique=True, nullable=False, comment="Telegram user ID")
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)

    telegram_username = Column(String(255), nullable=True)
    telegram_first_name = Column(String(255), nullable=True)
    telegram_last_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_activity_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, default=func.now())
    updated_at = Column(UTCDateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<TelegramUser(telegram_user_id={self.telegram_user_id}, user_id={self.user_id})>"
