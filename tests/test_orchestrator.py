import pytest

from catalog_chat.assistant import AssistantTimeoutError
from catalog_chat.catalog import CatalogStore, ProductRecord
from catalog_chat.chatbot.orchestrator import ChatOrchestrator
from catalog_chat.fallback_handler import FallbackHandler
from catalog_chat.response_processor import ResponseProcessor


def _orchestrator(db, catalog, assistant=None):
    return ChatOrchestrator(
        store=db,
        fallback_handler=FallbackHandler(catalog),
        response_processor=ResponseProcessor(),
        assistant=assistant,
    )


class FailingStore:
    def add_message(self, **kwargs):
        raise RuntimeError("database is down")


@pytest.mark.asyncio
async def test_assistant_reply_is_processed_and_persisted(db, catalog, fake_assistant_cls):
    assistant = fake_assistant_cls(reply="![Mouse](https://x.com/m.png)\nTemos o Mouse Gamer.")
    orch = _orchestrator(db, catalog, assistant)

    reply = await orch.handle_message("u1", "tem mouse?")

    assert assistant.calls == ["tem mouse?"]
    assert reply.is_html is True
    assert reply.image_url is None
    assert "/proxy-image?url=https%3A%2F%2Fx.com%2Fm.png" in reply.response

    user_msg, bot_msg = db.get_history("u1")
    assert (user_msg.sender, user_msg.content, user_msg.is_html) == ("user", "tem mouse?", False)
    assert bot_msg.sender == "assistant"
    assert bot_msg.content == reply.response
    assert bot_msg.image_url == "https://x.com/m.png"
    assert bot_msg.is_html is True
    assert reply.timestamp == bot_msg.timestamp


@pytest.mark.asyncio
async def test_without_assistant_uses_local_search(db, catalog):
    orch = _orchestrator(db, catalog)
    assert orch.assistant_enabled is False

    reply = await orch.handle_message("u1", "mouse")

    assert "Usando busca local. Encontrei estes produtos:" in reply.response
    assert "/proxy-image?url=https%3A%2F%2Fx.com%2Fmouse.png" in reply.response
    assert db.get_history("u1")[-1].image_url == "https://x.com/mouse.png"


@pytest.mark.asyncio
async def test_assistant_failure_falls_back_to_local_search(db, catalog, fake_assistant_cls):
    orch = _orchestrator(db, catalog, fake_assistant_cls(error=AssistantTimeoutError(60.0)))

    reply = await orch.handle_message("u1", "teclado")

    assert "Erro ao comunicar com o assistente de IA, usando busca local. Encontrei:" in reply.response
    assert "Teclado Mecanico" in reply.response
    assert len(db.get_history("u1")) == 2


@pytest.mark.asyncio
async def test_assistant_failure_without_matches(db, catalog, fake_assistant_cls):
    orch = _orchestrator(db, catalog, fake_assistant_cls(error=RuntimeError("network")))
    reply = await orch.handle_message("u1", "geladeira")
    assert "Não encontrei produtos na busca local." in reply.response
    assert reply.response.startswith('<div class="message-text-content">')


@pytest.mark.asyncio
async def test_storage_failure_propagates(catalog, fake_assistant_cls):
    assistant = fake_assistant_cls(reply="oi")
    orch = _orchestrator(FailingStore(), catalog, assistant)
    with pytest.raises(RuntimeError):
        await orch.handle_message("u1", "oi")
    assert assistant.calls == []


@pytest.mark.asyncio
async def test_clear_history_only_touches_one_user(db, catalog):
    orch = _orchestrator(db, catalog)
    await orch.handle_message("u1", "mouse")
    await orch.handle_message("u2", "mouse")

    assert orch.clear_history("u1") == 2
    assert orch.history("u1") == []
    assert len(orch.history("u2")) == 2


@pytest.mark.asyncio
async def test_unformattable_price_does_not_break_local_search(db):
    catalog = CatalogStore([ProductRecord.from_dict({"nome": "SSD NVMe", "sku": "S1", "preco": "NaN"})])
    reply = await _orchestrator(db, catalog).handle_message("u1", "ssd")
    assert "**Preço:** NaN" in reply.response
