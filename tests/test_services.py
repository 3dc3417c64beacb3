"""
Identity, OCR and Telegram adapter tests
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from openai import OpenAIError
from telegram.constants import ParseMode

from bot.telegram_bot import TelegramLedgerBot, TelegramNotifier
from models.exceptions import InactiveUserError, OCRUnavailableError, RegistrationError
from services.ocr_service import OCRService
from services.user_service import UserService


NOW = datetime(2025, 8, 29, 4, 30, tzinfo=timezone.utc)


class TestUserService:
    """Telegram account linking"""

    @pytest.fixture
    def repository(self):
        repository = MagicMock()
        repository.get_telegram_user = AsyncMock(return_value=MagicMock(user_id="user-1", is_active=True))
        repository.save_telegram_user = AsyncMock(return_value=True)
        repository.get_app_user = AsyncMock(return_value=MagicMock(id="user-1"))
        return repository

    @pytest.mark.asyncio
    async def test_resolve_registered_user(self, repository):
        service = UserService(repository, clock=lambda: NOW)

        assert await service.resolve_user(7, "ani", "Ani", None) == "user-1"
        repository.save_telegram_user.assert_awaited_once_with(
            7,
            last_activity_at=NOW,
            telegram_username="ani",
            telegram_first_name="Ani",
            telegram_last_name=None
        )

    @pytest.mark.asyncio
    async def test_resolve_unregistered_user(self, repository):
        repository.get_telegram_user.return_value = None
        service = UserService(repository)

        assert await service.resolve_user(7) is None
        repository.save_telegram_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resolve_inactive_user(self, repository):
        repository.get_telegram_user.return_value = MagicMock(user_id="user-1", is_active=False)
        service = UserService(repository)

        with pytest.raises(InactiveUserError):
            await service.resolve_user(7)

    @pytest.mark.asyncio
    async def test_register(self, repository):
        service = UserService(repository, clock=lambda: NOW)

        assert await service.register(7, "user-1", "ani") == "created"

        repository.save_telegram_user.return_value = False
        assert await service.register(7, "user-1", "ani") == "updated"
        assert repository.save_telegram_user.await_args.kwargs["is_active"] is True

    @pytest.mark.asyncio
    async def test_register_unknown_user(self, repository):
        repository.get_app_user.return_value = None
        service = UserService(repository)

        with pytest.raises(RegistrationError):
            await service.register(7, "nobody")
        repository.save_telegram_user.assert_not_awaited()


class TestOCRService:
    """Receipt OCR"""

    def client_returning(self, content):
        response = MagicMock()
        response.choices[0].message.content = content
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)
        return client

    @pytest.mark.asyncio
    async def test_extract_text(self):
        client = self.client_returning("```text\noutcome 50000 Food BCA Coffee\n```")
        service = OCRService(client=client, model="gpt-4o-mini")

        text = await service.extract_text(b"image", now=NOW)

        assert text == "outcome 50000 Food BCA Coffee"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        image_part = kwargs["messages"][1]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")
        assert "2025-08-29 11:30" in kwargs["messages"][1]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_not_configured(self):
        service = OCRService(client=MagicMock())
        service.client = None

        assert service.available is False
        with pytest.raises(OCRUnavailableError):
            await service.extract_text(b"image")

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
        service = OCRService(client=client)

        with pytest.raises(OCRUnavailableError):
            await service.extract_text(b"image")

    @pytest.mark.asyncio
    async def test_empty_response(self):
        service = OCRService(client=self.client_returning("   "))

        with pytest.raises(OCRUnavailableError):
            await service.extract_text(b"image")


class TestTelegramAdapter:
    """Telegram transport"""

    @pytest.mark.asyncio
    async def test_notifier_uses_html(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        notifier = TelegramNotifier(bot)

        await notifier.send_reply(42, "<b>hi</b>")
        bot.send_message.assert_awaited_once_with(chat_id=42, text="<b>hi</b>", parse_mode=ParseMode.HTML)

        await notifier.send_reply(42, "plain", rich=False)
        assert bot.send_message.await_args.kwargs["parse_mode"] is None

    @pytest.mark.asyncio
    async def test_photo_update_is_downloaded(self):
        file = MagicMock()
        file.download_as_bytearray = AsyncMock(return_value=bytearray(b"image"))
        largest = MagicMock(file_id="large")
        largest.get_file = AsyncMock(return_value=file)

        update = MagicMock()
        update.effective_message.photo = [MagicMock(file_id="small"), largest]
        update.effective_message.text = None
        update.effective_chat.id = 42
        update.effective_user.id = 7
        update.effective_user.username = "ani"
        update.effective_user.first_name = "Ani"
        update.effective_user.last_name = None

        incoming = await TelegramLedgerBot().to_incoming_message(update)

        assert incoming.chat_id == 42
        assert incoming.user_id == 7
        assert incoming.photo == b"image"
        assert incoming.photo_file_id == "large"
        assert incoming.text is None

    @pytest.mark.asyncio
    async def test_text_update(self):
        update = MagicMock()
        update.effective_message.photo = []
        update.effective_message.text = "outcome 1 Food BCA"
        update.effective_chat.id = 42
        update.effective_user = None

        incoming = await TelegramLedgerBot().to_incoming_message(update)

        assert incoming.text == "outcome 1 Food BCA"
        assert incoming.user_id is None
        assert incoming.photo is None
