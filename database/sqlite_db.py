"""
Database engine and sessions
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from loguru import logger

from config.settings import get_settings
from database.models import Base, Category, Account


DEFAULT_CATEGORIES = [
    ("Food", "outcome"),
    ("Transportation", "outcome"),
    ("Shopping", "outcome"),
    ("Entertainment", "outcome"),
    ("Health", "outcome"),
    ("Education", "outcome"),
    ("Bills", "outcome"),
    ("Rent", "outcome"),
    ("Utilities", "outcome"),
    ("Salary", "income"),
    ("Freelance", "income"),
    ("Investment", "both"),
    ("Gift", "both"),
    ("Transfer", "both"),
    ("Other", "both"),
]

DEFAULT_ACCOUNTS = [
    "BCA", "Mandiri", "BRI", "BNI", "CIMB", "Permata",
    "Cash", "OVO", "GoPay", "Dana", "ShopeePay", "LinkAja",
]


def async_database_url(url: str) -> str:
    """Use the aiosqlite driver for plain sqlite URLs"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


settings = get_settings()

async_engine = create_async_engine(
    async_database_url(settings.database_url),
    echo=settings.debug
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def seed_defaults(session_factory: async_sessionmaker = AsyncSessionLocal):
    """Insert default categories and accounts that are missing"""
    async with session_factory() as session:
        existing_categories = set((await session.execute(select(Category.name))).scalars())
        existing_accounts = set((await session.execute(select(Account.name))).scalars())

        for name, allowed_type in DEFAULT_CATEGORIES:
            if name not in existing_categories:
                session.add(Category(name=name, allowed_type=allowed_type))

        for name in DEFAULT_ACCOUNTS:
            if name not in existing_accounts:
                session.add(Account(name=name))

        await session.commit()


async def init_database(engine: AsyncEngine = async_engine, seed: Optional[bool] = None):
    """Create tables and optionally seed defaults"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed is None:
        seed = settings.seed_defaults

    if seed:
        factory = AsyncSessionLocal if engine is async_engine else async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        await seed_defaults(factory)
        logger.info("✅ Default categories and accounts seeded")

