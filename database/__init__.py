"""
Database package - SQLAlchemy models and connections
"""

from .models import Base, Category, Account, Transaction, BudgetRecord, AppUser, TelegramUser
from .sqlite_db import AsyncSessionLocal, init_database, seed_defaults

__all__ = [
    'Base',
    'Category',
    'Account',
    'Transaction',
    'BudgetRecord',
    'AppUser',
    'TelegramUser',
    'AsyncSessionLocal',
    'init_database',
    'seed_defaults'
]
