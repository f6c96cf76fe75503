"""
Real Postgres-backed message store for production when USE_POSTGRES_CONVERSATIONS and DATABASE_URL are set.
Implements the same interface as catalog_chat.database.postgres (in-memory stub).
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker

from catalog_chat.database.models import Base, ChatMessage


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    # SQLAlchemy defaults plain postgresql:// to psycopg2; this project ships psycopg 3
    if s.startswith("postgres://"):
        s = "postgresql://" + s[len("postgres://"):]
    if s.startswith("postgresql://"):
        s = "postgresql+psycopg://" + s[len("postgresql://"):]
    return s


class MessageStore:
    """
    Chat message persistence using SQLAlchemy. Use when DATABASE_URL is set and
    USE_POSTGRES_CONVERSATIONS=true.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        engine_kwargs = {"pool_pre_ping": True}
        if not connection_string.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(connection_string, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect():
                return True
        except Exception:
            return False

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

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
        with self._session() as s:
            m = ChatMessage(
                id=str(uuid4()),
                user_id=user_id,
                sender=sender,
                content=content,
                image_url=image_url,
                is_html=is_html,
            )
            s.add(m)
            s.flush()
            s.refresh(m)
            return m

    def get_history(self, user_id: str, limit: int = 50) -> List[ChatMessage]:
        """Return the user's most recent `limit` messages, oldest first."""
        with self._session() as s:
            stmt = (
                select(ChatMessage)
                .where(ChatMessage.user_id == user_id)
                .order_by(ChatMessage.timestamp.desc())
                .limit(limit)
            )
            return list(reversed(s.execute(stmt).scalars().all()))

    def clear_history(self, user_id: str) -> int:
        with self._session() as s:
            result = s.execute(delete(ChatMessage).where(ChatMessage.user_id == user_id))
            return result.rowcount or 0
