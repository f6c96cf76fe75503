"""Error handling helpers for the chat API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

GENERIC_CHAT_ERROR = "Erro interno ao processar mensagem."
GENERIC_CLEAR_ERROR = "Erro ao limpar histórico."


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        # Full detail stays in the server log; the client only gets the generic message.
        logger.error("Chat processing error: %s (context=%s)", exc, context or {}, exc_info=True)
        return {"error": GENERIC_CHAT_ERROR}

    def handle_clear_exception(self, exc: Exception, user_id: str) -> Dict[str, Any]:
        logger.error("Error clearing chat history for user %s: %s", user_id, exc, exc_info=True)
        return {"success": False, "message": GENERIC_CLEAR_ERROR}
