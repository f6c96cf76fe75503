"""
Chat request orchestration: persist -> assistant or local fallback -> format -> persist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from catalog_chat.fallback_handler import REASON_ASSISTANT_ERROR, REASON_UNAVAILABLE, FallbackHandler
from catalog_chat.response_processor import ResponseProcessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    response: str
    timestamp: datetime
    image_url: Optional[str] = None
    is_html: bool = True


class ChatOrchestrator:
    """
    Handles one chat message end to end. Holds no per-request state, so one
    instance serves all requests.

    Failures on the assistant path never reach the caller: they degrade to the
    local catalog search. Storage failures propagate.
    """

    def __init__(
        self,
        store: Any,
        fallback_handler: FallbackHandler,
        response_processor: ResponseProcessor,
        assistant: Optional[Any] = None,
    ):
        self.store = store
        self.fallback_handler = fallback_handler
        self.response_processor = response_processor
        self.assistant = assistant

    @property
    def assistant_enabled(self) -> bool:
        return self.assistant is not None

    async def handle_message(self, user_id: str, text: str) -> ChatReply:
        # 1. Save user message
        self.store.add_message(user_id=user_id, sender="user", content=text)

        # 2. Assistant reply, or local search
        raw_text = await self._raw_reply(text)

        # 3. Extract image and build display markup
        processed = self.response_processor.process(raw_text)

        # 4. Save assistant reply
        saved = self.store.add_message(
            user_id=user_id,
            sender="assistant",
            content=processed.content,
            image_url=processed.image_url,
            is_html=processed.is_html,
        )

        # The image is embedded in the markup, so image_url stays None for the client.
        return ChatReply(response=processed.content, timestamp=saved.timestamp, image_url=None, is_html=processed.is_html)

    async def _raw_reply(self, text: str) -> str:
        if self.assistant is None:
            logger.info("OpenAI client or Assistant ID not available, falling back to local search for text message.")
            return self.fallback_handler.generate_fallback(text, reason=REASON_UNAVAILABLE)

        logger.info("Processing text message using Assistants API...")
        try:
            return await self.assistant.ask(text)
        except Exception as e:
            logger.error("Error interacting with OpenAI Assistants API or run failed, attempting fallback: %s", e, exc_info=True)
            return self.fallback_handler.generate_fallback(text, reason=REASON_ASSISTANT_ERROR, error=e)

    def clear_history(self, user_id: str) -> int:
        removed = self.store.clear_history(user_id)
        logger.info("Cleared %d messages for user %s", removed, user_id)
        return removed

    def history(self, user_id: str, limit: int = 50) -> List[Any]:
        return self.store.get_history(user_id, limit=limit)
