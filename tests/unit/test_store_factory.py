"""Testes para a factory de stores e bootstrap da aplicação."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from omnichannel.api.app import create_app
from omnichannel.config.settings import Settings
from omnichannel.infra.factory import create_stores
from omnichannel.infra.firestore_store import FirestoreConversationStore, FirestoreCustomerStore
from omnichannel.infra.memory_store import InMemoryConversationStore, InMemoryCustomerStore


class TestCreateStores:
    def test_memory_backend(self) -> None:
        stores = create_stores(Settings(store_backend="memory"))
        assert isinstance(stores.customers, InMemoryCustomerStore)
        assert isinstance(stores.conversations, InMemoryConversationStore)

    def test_memory_backend_outside_development_warns(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            create_stores(Settings(environment="qa", store_backend="memory"))
        assert "memory_store_outside_development" in caplog.messages

    def test_memory_backend_in_development_is_quiet(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            create_stores(Settings(environment="local", store_backend="memory"))
        assert "memory_store_outside_development" not in caplog.messages

    def test_firestore_backend_uses_given_client(self) -> None:
        client = MagicMock()
        settings = Settings(
            store_backend="firestore",
            firestore_project_id="proj-1",
            conversations_collection="conv_test",
        )

        stores = create_stores(settings, firestore_client=client)

        assert isinstance(stores.customers, FirestoreCustomerStore)
        assert isinstance(stores.conversations, FirestoreConversationStore)
        stores.conversations.list_active_conversations("acme")
        client.collection.assert_called_with("conv_test")

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_stores(Settings(store_backend="sqlite"))


class TestAppBootstrap:
    def test_create_app_with_memory_in_dev(self) -> None:
        app = create_app(Settings(environment="development", store_backend="memory"))
        assert app.state.stores is not None
        assert app.state.mode_controller.max_message_len == 4000

    def test_create_app_rejects_memory_in_production(self) -> None:
        with pytest.raises(ValueError, match="Configuração inválida"):
            create_app(Settings(environment="production", store_backend="memory"))

    def test_create_app_with_firestore_in_production(self) -> None:
        settings = Settings(
            environment="production",
            store_backend="firestore",
            firestore_project_id="proj-1",
        )
        app = create_app(settings, firestore_client=MagicMock())
        assert isinstance(app.state.stores.conversations, FirestoreConversationStore)

    def test_create_app_aggregates_errors(self) -> None:
        settings = Settings(
            environment="staging", store_backend="memory", max_message_length_chars=10
        )
        with pytest.raises(ValueError) as exc_info:
            create_app(settings)
        assert "MAX_MESSAGE_LENGTH_CHARS" in str(exc_info.value)
        assert "STORE_BACKEND" in str(exc_info.value)
