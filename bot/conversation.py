"""
Conversation controller: decides how to answer each chat message
"""

import re
from datetime import datetime
from html import escape
from typing import Callable, Optional, Protocol, Tuple

from loguru import logger

from models.exceptions import (
    FormatError,
    LedgerBotError,
    OCRUnavailableError,
    RegistrationError,
    StorageError,
    TRANSACTION_USAGE
)
from models.schemas import IncomingMessage, PendingConfirmation, SaveResult
from services.date_resolver import parse_outcome_range, parse_summary_range
from services.ledger_service import LedgerService
from services.message_parser import parse_message
from services.ocr_service import OCRService
from services.pending_store import PendingConfirmationStore
from services.report_service import ReportService
from services.user_service import UserService
from utils.helpers import format_jakarta_datetime, utc_now


HELP_TEXT = """👋 <b>Financial Tracker Bot</b>

<b>🔐 Registration:</b>
/register &lt;user_id&gt; - Link your Telegram account to your ledger user

<b>📝 Record Transaction:</b>
<code>outcome 75000 Food BCA [YYYY-MM-DD HH:MM] Lunch</code>
<code>income 500000 Salary BCA Monthly salary</code>

<b>📸 OCR from Image:</b>
Send a photo of receipt/transaction and I'll extract the text for you to confirm

<b>📊 Check Reports:</b>
/outcome - Current month outcomes
/outcome today - Current month outcomes
/outcome 2024-01 - January 2024 outcomes
/outcome 2024 - All 2024 outcomes

<b>💰 Monthly Summary:</b>
/summary - Current month income &amp; outcome
/summary Sept 2025 - September 2025 summary
/summary Sept 2025 - Oct 2025 - Range summary

<b>Format:</b> &lt;type&gt; &lt;amount&gt; &lt;Category&gt; &lt;Account&gt; [optional date] &lt;description&gt;"""

COMMANDS = ("outcome", "summary", "register", "start", "help")
_BOT_MENTION = re.compile(r'^@\w+')

CONFIRM_WORDS = ("yes", "y")
CANCEL_WORDS = ("no", "n")


def match_command(text: str) -> Tuple[Optional[str], str]:
    """Route by command prefix; returns the command name and its argument text"""
    if not text.startswith("/"):
        return None, ""
    body = text[1:]
    for name in COMMANDS:
        if body[:len(name)].lower() == name:
            rest = _BOT_MENTION.sub("", body[len(name):], count=1)
            return name, rest.strip()
    return None, ""


class Notifier(Protocol):
    async def send_reply(self, chat_id: int, text: str, rich: bool = True) -> None:
        ...


def format_save_reply(result: SaveResult, verb: str = "Saved") -> str:
    """Confirmation text for a saved transaction"""
    draft = result.draft
    reply = (
        f"✅ {verb} {draft.type.value} {draft.amount} IDR\n"
        f"Category: {escape(draft.category)}\n"
        f"Account: {escape(draft.account)}\n"
        f"When: {format_jakarta_datetime(draft.occurred_at)}"
    )
    if draft.description:
        reply += f"\nDescription: {escape(draft.description)}"
    reply += f"\nRef: {result.transaction_id}"

    status = result.budget_status
    if status:
        if status.progress:
            reply += f"\n\n{status.progress}"
        if status.alerts:
            reply += f"\n\n{status.alerts}"
    return reply


def format_error_reply(error: FormatError) -> str:
    return (
        f"❌ Sorry, I couldn't understand that message.\n"
        f"{escape(str(error))}\n\n"
        f"Format: <code>{escape(TRANSACTION_USAGE)}</code>\n"
        f"Example: <code>outcome 75000 Food BCA Lunch at warung</code>"
    )


class ConversationController:
    """Routes one incoming chat message to the matching flow"""

    def __init__(
        self,
        notifier: Notifier,
        ledger: LedgerService,
        reports: ReportService,
        users: UserService,
        pending: PendingConfirmationStore,
        ocr: Optional[OCRService] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.notifier = notifier
        self.ledger = ledger
        self.reports = reports
        self.users = users
        self.pending = pending
        self.ocr = ocr
        self.clock = clock

    async def reply(self, chat_id: int, text: str, rich: bool = True):
        await self.notifier.send_reply(chat_id, text, rich)

    async def handle(self, message: IncomingMessage):
        """Handle one chat message to completion"""
        text = (message.text or "").strip()
        command_name, args = match_command(text)

        user_id = None
        if message.user_id and command_name != "register":
            user_id = await self._resolve_user(message)

        if message.photo is not None:
            await self.handle_photo(message)
            return

        if not text:
            return

        pending = self.pending.get(message.chat_id)
        if pending is not None:
            await self.handle_pending(message.chat_id, text, user_id, pending)
            return

        if command_name in ("start", "help"):
            await self.reply(message.chat_id, HELP_TEXT)
        elif command_name == "register":
            await self.handle_register(message, args)
        elif command_name == "outcome":
            await self.handle_outcome(message.chat_id, args)
        elif command_name == "summary":
            await self.handle_summary(message.chat_id, args)
        else:
            await self.handle_transaction(message.chat_id, text, user_id)

    async def _resolve_user(self, message: IncomingMessage) -> Optional[str]:
        try:
            return await self.users.resolve_user(
                message.user_id, message.username, message.first_name, message.last_name
            )
        except LedgerBotError as e:
            logger.info(f"Telegram user {message.user_id} not registered or inactive: {e}")
            return None

    async def handle_transaction(self, chat_id: int, text: str, user_id: Optional[str]):
        try:
            draft = parse_message(text, now=self.clock())
        except FormatError as e:
            logger.info(f"Message did not match the transaction format: {e}")
            await self.reply(chat_id, format_error_reply(e))
            return

        try:
            result = await self.ledger.record(draft, user_id)
        except StorageError as e:
            logger.error(f"❌ Error saving transaction: {e}")
            await self.reply(chat_id, f"❌ Could not save the transaction: {escape(str(e))}")
            return

        await self.reply(chat_id, format_save_reply(result))

    async def handle_pending(self, chat_id: int, text: str, user_id: Optional[str], pending: PendingConfirmation):
        """Confirm, cancel or correct the pending OCR text"""
        response = text.lower().strip()

        if response in CANCEL_WORDS:
            self.pending.discard(chat_id)
            await self.reply(chat_id, "❌ OCR transaction cancelled. You can send a new image or type a transaction manually.")
            return

        if response in CONFIRM_WORDS:
            source, verb = pending.text, "Confirmed and saved"
            error_prefix = "❌ Error processing OCR text"
            error_hint = "Please send a corrected version or try again."
        else:
            source, verb = text, "Corrected and saved"
            error_prefix = "❌ Error with corrected format"
            error_hint = "Please check the format or reply 'no' to cancel."

        try:
            draft = parse_message(source, now=self.clock())
            result = await self.ledger.record(draft, user_id)
        except (FormatError, StorageError) as e:
            logger.info(f"Pending confirmation for chat {chat_id} not saved: {e}")
            await self.reply(chat_id, f"{error_prefix}: {escape(str(e))}\n\n{error_hint}")
            return

        self.pending.discard(chat_id)
        await self.reply(chat_id, format_save_reply(result, verb))

    async def handle_photo(self, message: IncomingMessage):
        """Read a photo and ask the user to confirm the extracted transaction"""
        if self.ocr is None:
            await self.reply(message.chat_id, "❌ OCR is not configured. Please type the transaction manually.")
            return

        try:
            text = await self.ocr.extract_text(message.photo, now=self.clock())
        except OCRUnavailableError as e:
            await self.reply(message.chat_id, f"❌ {escape(str(e))}")
            return

        self.pending.put(message.chat_id, text, message.photo_file_id)
        await self.reply(
            message.chat_id,
            f"📸 <b>Text extracted from image:</b>\n<code>{escape(text)}</code>\n\n"
            f"Reply <b>yes</b> to save, <b>no</b> to cancel, or send a corrected version."
        )

    async def handle_register(self, message: IncomingMessage, args: str):
        chat_id = message.chat_id
        if not message.user_id:
            await self.reply(chat_id, "❌ Unable to identify Telegram user. Please try again.")
            return

        if not args:
            await self.reply(
                chat_id,
                "❌ Please provide your user ID.\n\nUsage: /register &lt;user_id&gt;"
            )
            return

        try:
            result = await self.users.register(
                message.user_id, args, message.username, message.first_name, message.last_name
            )
        except (RegistrationError, StorageError) as e:
            await self.reply(
                chat_id,
                f"❌ Registration failed: {escape(str(e))}\n\nPlease check your user ID and try again."
            )
            return

        if result == "created":
            await self.reply(
                chat_id,
                "✅ <b>Registration Successful!</b>\n\nYour Telegram account has been linked to your ledger user.\n\n"
                "You can now use all features including budget tracking."
            )
        else:
            await self.reply(chat_id, "✅ <b>Account Updated!</b>\n\nYour Telegram account information has been updated.")

    async def handle_outcome(self, chat_id: int, args: Optional[str]):
        try:
            spec = parse_outcome_range(args, now=self.clock())
            report = await self.reports.outcome_report(spec)
        except (FormatError, StorageError) as e:
            await self.reply(chat_id, f"❌ Error: {escape(str(e))}")
            return
        await self.reply(chat_id, report)

    async def handle_summary(self, chat_id: int, args: Optional[str]):
        try:
            months = parse_summary_range(args, now=self.clock())
            report = await self.reports.summary_report(months)
        except (FormatError, StorageError) as e:
            await self.reply(chat_id, f"❌ Error: {escape(str(e))}")
            return
        await self.reply(chat_id, report)
