"""
Lightweight in-memory message store for local development and tests.

Provides the same interface as `postgres_real.MessageStore` so the API can run
without a real database. It is NOT intended for production use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
import threading
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatMessage:
    id: str
    user_id: str
    sender: str
    content: str
    image_url: Optional[str] = None
    is_html: bool = False
    timestamp: datetime = field(default_factory=_utcnow)


class MessageStore:
    """
    In-memory stand-in for the SQLAlchemy-backed message store.

    Writes are serialized with a lock; messages are append-only apart from
    bulk deletion per user.
    """

    def __init__(self) -> None:
        self._messages: List[ChatMessage] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """
        No-op for the in-memory implementation. Kept for compatibility
        with the startup hook in `catalog_chat/api/main.py`.
        """
        return None

    def ping(self) -> bool:
        return True

    # ------------------------------------------------------------------ #
    # Messages
    # ------------------------------------------------------------------ #
    def add_message(
        self,
        user_id: str,
        sender: str,
        content: str,
        image_url: Optional[str] = None,
        is_html: bool = False,
    ) -> ChatMessage:
        msg = ChatMessage(
            id=str(uuid.uuid4()),
            user_id=user_id,
            sender=sender,
            content=content,
            image_url=image_url,
            is_html=is_html,
        )
        with self._lock:
            self._messages.append(msg)
        return msg

    def get_history(self, user_id: str, limit: int = 50) -> List[ChatMessage]:
        """Return the user's most recent `limit` messages, oldest first."""
        with self._lock:
            msgs = [m for m in self._messages if m.user_id == user_id]
        return msgs[-limit:] if limit else msgs

    def clear_history(self, user_id: str) -> int:
        with self._lock:
            kept = [m for m in self._messages if m.user_id != user_id]
            removed = len(self._messages) - len(kept)
            self._messages = kept
        return removed
