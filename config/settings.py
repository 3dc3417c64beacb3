"""
Application settings
"""

from typing import List, Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = Field(default="Telegram Ledger Bot")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    telegram_bot_token: str = Field(..., description="Telegram bot token")
    telegram_webhook_url: Optional[str] = Field(default=None, description="Webhook URL")
    telegram_secret_token: Optional[str] = Field(default=None, description="Expected X-Telegram-Bot-Api-Secret-Token")
    allowed_chat_ids: str = Field(default="", description="Comma separated chat IDs allowed to use the bot")

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key used for receipt OCR")
    openai_ocr_model: str = Field(default="gpt-4o-mini")

    database_url: str = Field(default="sqlite:///./ledger_bot.db")
    seed_defaults: bool = Field(default=True, description="Insert default categories and accounts")

    default_currency: str = Field(default="IDR")
    pending_confirmation_ttl_seconds: int = Field(default=300, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def allowed_chat_id_list(self) -> List[str]:
        return [chat_id.strip() for chat_id in self.allowed_chat_ids.split(",") if chat_id.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)"""
    return Settings()
