"""
Receipt OCR through the OpenAI vision API
"""

import base64
from datetime import datetime
from typing import Optional

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from config.settings import get_settings
from models.exceptions import OCRUnavailableError, TRANSACTION_USAGE
from utils.helpers import to_jakarta, utc_now


class OCRService:
    """Turns a photo of a receipt or transfer into transaction text"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        settings = get_settings()
        self.model = model or settings.openai_ocr_model
        api_key = api_key or settings.openai_api_key
        self.client = client or (AsyncOpenAI(api_key=api_key) if api_key else None)

    @property
    def available(self) -> bool:
        return self.client is not None

    def _create_ocr_prompt(self, now: datetime) -> str:
        """Prompt asking for one transaction line"""
        today = to_jakarta(now).strftime("%Y-%m-%d %H:%M")
        return f"""
Read this receipt or bank transfer screenshot and write ONE transaction line in this exact format:
{TRANSACTION_USAGE}

Rules:
- type is "outcome" for purchases and payments, "income" for money received
- amount uses digits only, optionally with a decimal part (example: 75000 or 12500.50)
- Category and Account are single words (example: Food BCA)
- add the date in brackets when the image shows one, in Jakarta time (now is {today})
- the description is the merchant or a short note

Example:
outcome 75000 Food BCA [2025-08-29 11:30] Lunch at warung

Return ONLY the transaction line, without any additional text.
"""

    def _clean_response(self, text: str) -> str:
        lines = [line.strip() for line in (text or "").splitlines()]
        lines = [line for line in lines if line and not line.startswith("```")]
        return lines[0] if lines else ""

    async def extract_text(self, image_bytes: bytes, now: Optional[datetime] = None) -> str:
        """Extract a transaction line from an image"""
        if not self.available:
            raise OCRUnavailableError("OCR is not configured. Please type the transaction manually.")

        encoded = base64.b64encode(bytes(image_bytes)).decode("utf-8")

        try:
            logger.info(f"🧠 Reading image with {self.model}")
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": "You extract personal finance transactions from images. Always answer with a single line."
                    },
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self._create_ocr_prompt(now or utc_now())},
                            {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{encoded}"}}
                        ]
                    }
                ],
                temperature=0.1,
                max_tokens=200
            )

        except OpenAIError as e:
            logger.error(f"❌ Error reading image: {e}")
            raise OCRUnavailableError(f"Could not read the image: {e}") from e

        text = self._clean_response(response.choices[0].message.content)
        logger.info(f"OCR response received: {len(text)} characters")

        if not text:
            raise OCRUnavailableError("No text could be read from the image.")
        return text
