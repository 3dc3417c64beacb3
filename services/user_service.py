"""
Telegram identity: links Telegram accounts to ledger users
"""

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from models.exceptions import InactiveUserError, RegistrationError
from utils.helpers import utc_now


class UserService:
    """Resolves and registers Telegram users"""

    def __init__(self, repository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    async def resolve_user(
        self,
        telegram_user_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> Optional[str]:
        """Ledger user id of a registered Telegram account, None when not registered"""
        link = await self.repository.get_telegram_user(telegram_user_id)
        if link is None:
            return None

        await self.repository.save_telegram_user(
            telegram_user_id,
            last_activity_at=self.clock(),
            telegram_username=username,
            telegram_first_name=first_name,
            telegram_last_name=last_name
        )

        if not link.is_active:
            raise InactiveUserError("Your Telegram account is not active. Please contact support.")

        return link.user_id

    async def register(
        self,
        telegram_user_id: int,
        user_id: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> str:
        """Link a Telegram account to a ledger user; returns "created" or "updated" """
        user = await self.repository.get_app_user(user_id)
        if user is None:
            raise RegistrationError("Invalid user ID. Please check your user ID.")

        created = await self.repository.save_telegram_user(
            telegram_user_id,
            user_id=user_id,
            telegram_username=username,
            telegram_first_name=first_name,
            telegram_last_name=last_name,
            is_active=True,
            last_activity_at=self.clock()
        )

        logger.info(f"✅ Telegram user {telegram_user_id} linked to {user_id}")
        return "created" if created else "updated"
