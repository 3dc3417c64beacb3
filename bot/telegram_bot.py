"""
Telegram adapter: turns updates into chat messages for the conversation controller
"""

from datetime import timedelta
from typing import Dict, Any, Optional

from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import Application, MessageHandler, filters, ContextTypes
from loguru import logger

from config.settings import get_settings
from bot.conversation import ConversationController
from models.schemas import IncomingMessage
from services.database_service import DatabaseService
from services.ledger_service import LedgerService
from services.ocr_service import OCRService
from services.pending_store import PendingConfirmationStore
from services.report_service import ReportService
from services.user_service import UserService


class TelegramNotifier:
    """Sends replies through the Telegram Bot API"""

    def __init__(self, bot):
        self.bot = bot

    async def send_reply(self, chat_id: int, text: str, rich: bool = True) -> None:
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=ParseMode.HTML if rich else None
        )


class TelegramLedgerBot:
    """Main Telegram bot"""

    def __init__(self, repository: Optional[DatabaseService] = None):
        self.settings = get_settings()
        self.repository = repository
        self.bot = None
        self.application = None
        self.controller = None

    async def setup(self):
        """Configure the bot"""
        try:
            self.application = Application.builder().token(self.settings.telegram_bot_token).build()
            self.bot = self.application.bot

            self.controller = self.build_controller()

            await self._setup_handlers()

            await self.application.initialize()

            if self.settings.telegram_webhook_url:
                await self._setup_webhook()

            logger.info("✅ Telegram bot configured")

        except Exception as e:
            logger.error(f"❌ Error configuring bot: {e}")
            raise

    def build_controller(self) -> ConversationController:
        """Wire the services behind the conversation controller"""
        repository = self.repository or DatabaseService(currency=self.settings.default_currency)
        pending = PendingConfirmationStore(
            ttl=timedelta(seconds=self.settings.pending_confirmation_ttl_seconds)
        )
        ocr = OCRService()
        if not ocr.available:
            logger.warning("⚠️ OPENAI_API_KEY not set - photo OCR disabled")

        return ConversationController(
            notifier=TelegramNotifier(self.bot),
            ledger=LedgerService(repository),
            reports=ReportService(repository, currency=self.settings.default_currency),
            users=UserService(repository),
            pending=pending,
            ocr=ocr
        )

    async def _setup_handlers(self):
        """Configure bot handlers"""
        self.application.add_handler(
            MessageHandler((filters.TEXT | filters.PHOTO) & filters.UpdateType.MESSAGES, self.handle_message)
        )
        logger.info("✅ Handlers configured")

    async def _setup_webhook(self):
        """Configure webhook"""
        try:
            await self.bot.set_webhook(
                url=self.settings.telegram_webhook_url,
                secret_token=self.settings.telegram_secret_token
            )
            logger.info(f"✅ Webhook configured: {self.settings.telegram_webhook_url}")
        except Exception as e:
            logger.error(f"❌ Error configuring webhook: {e}")
            raise

    async def process_update(self, update_data: Dict[str, Any]):
        """Process a webhook update"""
        try:
            update = Update.de_json(update_data, self.bot)
            await self.application.process_update(update)
        except Exception as e:
            logger.error(f"❌ Error processing update: {e}")
            raise

    async def to_incoming_message(self, update: Update) -> Optional[IncomingMessage]:
        """Build a transport-neutral message, downloading the largest photo"""
        message = update.effective_message
        if message is None or update.effective_chat is None:
            return None

        user = update.effective_user
        photo = None
        photo_file_id = None
        if message.photo:
            largest = message.photo[-1]
            photo_file_id = largest.file_id
            file = await largest.get_file()
            photo = bytes(await file.download_as_bytearray())

        return IncomingMessage(
            chat_id=update.effective_chat.id,
            user_id=user.id if user else None,
            username=user.username if user else None,
            first_name=user.first_name if user else None,
            last_name=user.last_name if user else None,
            text=message.text,
            photo=photo,
            photo_file_id=photo_file_id
        )

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle a text or photo message"""
        try:
            incoming = await self.to_incoming_message(update)
            if incoming is None:
                return

            logger.info(f"🔄 Processing message from chat {incoming.chat_id}")

            await context.bot.send_chat_action(chat_id=incoming.chat_id, action="typing")

            await self.controller.handle(incoming)

        except Exception as e:
            logger.error(f"❌ Error processing message: {e}")
            await update.effective_message.reply_text(
                "❌ Oops! Something went wrong while processing your message.\n"
                "Please try again or use /help"
            )

    async def stop(self):
        """Stop the bot"""
        if self.application:
            await self.application.shutdown()
            logger.info("Bot stopped")
