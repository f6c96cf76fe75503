"""Pytest fixtures for catalog search, orchestration and API tests."""

import pytest

from catalog_chat.catalog import CatalogStore, ProductRecord
from catalog_chat.database.postgres import MessageStore


@pytest.fixture
def db():
    """In-memory MessageStore stub for tests."""
    return MessageStore()


@pytest.fixture
def catalog():
    return CatalogStore(
        [
            ProductRecord.from_dict(
                {
                    "sku": "ABC123",
                    "nome": "Mouse Gamer RGB",
                    "categorias": "perifericos",
                    "imagem": "https://x.com/mouse.png",
                    "preco": 99.9,
                }
            ),
            ProductRecord.from_dict({"sku": "XYZ999", "nome": "Teclado Mecanico", "categorias": "perifericos"}),
        ]
    )


class FakeAssistant:
    """Stands in for AssistantClient: returns a canned reply or raises."""

    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def ask(self, message: str) -> str:
        self.calls.append(message)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_assistant_cls():
    return FakeAssistant
