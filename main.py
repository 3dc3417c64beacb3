"""
Personal finance ledger over Telegram: webhook entrypoint
"""

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
import uvicorn

from config.settings import get_settings
from config.logging_config import setup_logging
from bot.telegram_bot import TelegramLedgerBot
from database.sqlite_db import init_database


setup_logging()
logger = logging.getLogger(__name__)

bot_instance = None

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the application lifecycle"""
    global bot_instance

    try:
        logger.info("🔄 Starting Telegram Ledger Bot...")

        if not get_settings().telegram_secret_token:
            logger.warning("⚠️ TELEGRAM_SECRET_TOKEN is not set, every webhook call will be rejected")

        await init_database()
        logger.info("✅ Database initialized")

        bot_instance = TelegramLedgerBot()
        await bot_instance.setup()
        logger.info("✅ Bot configured")

        yield

    except Exception as e:
        logger.error(f"❌ Error during startup: {e}")
        raise
    finally:
        if bot_instance:
            await bot_instance.stop()
        logger.info("👋🏻 Application stopped")


settings = get_settings()
app = FastAPI(
    title="Telegram Ledger Bot",
    description="Personal finance ledger bot for Telegram",
    version="1.0.0",
    lifespan=lifespan
)


def update_chat_id(update_data: Dict[str, Any]) -> Optional[int]:
    """Chat id of a message or edited_message update"""
    message = update_data.get("message") or update_data.get("edited_message") or {}
    chat = message.get("chat") or {}
    return chat.get("id")


def is_authorized(request: Request) -> bool:
    expected = get_settings().telegram_secret_token
    if not expected:
        return False
    received = request.headers.get(SECRET_HEADER) or ""
    return secrets.compare_digest(received, expected)


def is_allowed_chat(chat_id: Optional[int]) -> bool:
    allowed = get_settings().allowed_chat_id_list
    if not allowed:
        return True
    return chat_id is not None and str(chat_id) in allowed


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "Telegram Ledger Bot is running!",
        "version": "1.0.0",
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "bot_status": "active" if bot_instance else "inactive",
        "database": "connected"
    }


@app.post("/webhook")
async def telegram_webhook(request: Request):
    """Receive updates from Telegram"""
    if not is_authorized(request):
        logger.warning("Rejected webhook call with a bad secret token")
        raise HTTPException(status_code=401, detail="Unauthorized")

    update_data = await request.json()
    chat_id = update_chat_id(update_data)

    if chat_id is None:
        logger.info(f"Ignoring update {update_data.get('update_id')} without a message")
        return JSONResponse({"status": "ok"})

    if not is_allowed_chat(chat_id):
        logger.warning(f"Rejected update from chat {chat_id}")
        raise HTTPException(status_code=403, detail="Forbidden")

    if not bot_instance:
        raise HTTPException(status_code=500, detail="Bot not initialized")

    try:
        logger.info(f"Received webhook update: {update_data.get('update_id')}")
        await bot_instance.process_update(update_data)
        return JSONResponse({"status": "ok"})

    except Exception as e:
        logger.error(f"Webhook error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
