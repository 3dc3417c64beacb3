"""
Pending OCR confirmations, one per chat
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from models.schemas import PendingConfirmation
from utils.helpers import utc_now


DEFAULT_TTL = timedelta(minutes=5)


class PendingConfirmationStore:
    """In-memory chat id -> pending confirmation map with expiry"""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Callable[[], datetime] = utc_now):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, PendingConfirmation] = {}

    def put(self, chat_id, text: str, image_file_id: Optional[str] = None) -> PendingConfirmation:
        """Store text for a chat, replacing any previous entry"""
        entry = PendingConfirmation(text=text, created_at=self.clock(), image_file_id=image_file_id)
        self._entries[str(chat_id)] = entry
        return entry

    def get(self, chat_id) -> Optional[PendingConfirmation]:
        """Current entry, discarding it when stale"""
        key = str(chat_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_stale(self.clock(), self.ttl):
            del self._entries[key]
            return None
        return entry

    def discard(self, chat_id) -> None:
        self._entries.pop(str(chat_id), None)
