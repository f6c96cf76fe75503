"""
OpenAI Assistants client used for the primary chat path.

Each message runs on a fresh thread: create thread -> add message -> start run
-> poll until the run leaves the active states -> read the last assistant
message. The whole exchange is bounded by `max_wait_seconds`; a run left
unfinished by a timeout or a cancelled request is cancelled remotely.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI

from catalog_chat.utils.config_loader import AssistantConfig

logger = logging.getLogger(__name__)

ACTIVE_RUN_STATUSES = frozenset({"queued", "in_progress", "cancelling"})
EMPTY_REPLY_TEXT = "(Assistente não retornou texto)"
CANCEL_TIMEOUT_SECONDS = 10.0


@dataclass
class _PendingRun:
    """Remote run started by one `ask` call and not yet finished."""

    thread_id: Optional[str] = None
    run_id: Optional[str] = None


class AssistantError(RuntimeError):
    """Any failure on the remote assistant path; callers fall back to local search."""


class AssistantRunError(AssistantError):
    def __init__(self, status: str):
        super().__init__(f"Assistant run finished with status: {status}")
        self.status = status


class AssistantTimeoutError(AssistantError):
    def __init__(self, waited: float):
        super().__init__(f"Assistant run did not finish within {waited:.1f}s")
        self.waited = waited


class AssistantClient:
    def __init__(
        self,
        api_key: Optional[str],
        assistant_id: str,
        poll_interval: float = 1.0,
        max_wait_seconds: float = 60.0,
        client: Optional[Any] = None,
    ):
        if not assistant_id:
            raise ValueError("assistant_id is required")
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.max_wait_seconds = max_wait_seconds
        self.client = client or AsyncOpenAI(api_key=api_key)

    @classmethod
    def from_config(cls, cfg: AssistantConfig) -> Optional["AssistantClient"]:
        """Build a client from env-provided credentials, or None when they are missing."""
        api_key = cfg.api_key()
        assistant_id = cfg.assistant_id()
        if not api_key or not assistant_id:
            logger.warning(
                "Warning: %s or %s not set. OpenAI Assistants API integration disabled.",
                cfg.api_key_env,
                cfg.assistant_id_env,
            )
            return None

        client = cls(
            api_key=api_key,
            assistant_id=assistant_id,
            poll_interval=cfg.poll_interval,
            max_wait_seconds=cfg.max_wait_seconds,
        )
        logger.info("OpenAI client initialized.")
        return client

    async def ask(self, message: str) -> str:
        """Send `message` on a fresh thread and return the assistant's reply text.

        The whole exchange, including thread and run creation, must finish
        within `max_wait_seconds`. A run left behind by a timeout or by a
        cancelled request is cancelled on the remote side.
        """
        pending = _PendingRun()
        try:
            return await asyncio.wait_for(self._converse(message, pending), timeout=self.max_wait_seconds)
        except asyncio.TimeoutError:
            await self._cancel_pending(pending)
            raise AssistantTimeoutError(self.max_wait_seconds) from None
        except asyncio.CancelledError:
            await self._cancel_pending(pending)
            raise

    async def _converse(self, message: str, pending: _PendingRun) -> str:
        threads = self.client.beta.threads

        thread = await threads.create()
        pending.thread_id = thread.id
        await threads.messages.create(thread.id, role="user", content=message)
        run = await threads.runs.create(thread_id=thread.id, assistant_id=self.assistant_id)
        pending.run_id = run.id

        run = await self._wait_for_run(thread.id, run)
        pending.run_id = None

        if run.status != "completed":
            logger.error("OpenAI Run failed with status: %s", run.status)
            raise AssistantRunError(run.status)

        messages = await threads.messages.list(thread.id, order="asc")
        return self._last_assistant_text(messages.data) or EMPTY_REPLY_TEXT

    async def _wait_for_run(self, thread_id: str, run: Any) -> Any:
        while run.status in ACTIVE_RUN_STATUSES:
            await asyncio.sleep(self.poll_interval)
            run = await self.client.beta.threads.runs.retrieve(run.id, thread_id=thread_id)
        return run

    async def _cancel_pending(self, pending: _PendingRun) -> None:
        if pending.thread_id is None or pending.run_id is None:
            return
        try:
            await asyncio.wait_for(
                self.client.beta.threads.runs.cancel(pending.run_id, thread_id=pending.thread_id),
                timeout=CANCEL_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.warning("Failed to cancel run %s: %s", pending.run_id, e)

    @staticmethod
    def _last_assistant_text(messages: Any) -> str:
        assistant_messages = [m for m in messages if m.role == "assistant"]
        if not assistant_messages:
            return ""
        content = assistant_messages[-1].content
        if content and content[0].type == "text":
            return content[0].text.value
        return ""
