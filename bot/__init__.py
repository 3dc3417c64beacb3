"""
Bot package - Telegram bot implementation
"""

from .conversation import ConversationController, HELP_TEXT
from .telegram_bot import TelegramLedgerBot, TelegramNotifier

__all__ = ['ConversationController', 'HELP_TEXT', 'TelegramLedgerBot', 'TelegramNotifier']
