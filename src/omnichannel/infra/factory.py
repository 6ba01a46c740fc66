"""Factory de stores conforme STORE_BACKEND."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from omnichannel.config.settings import Settings
from omnichannel.domain.conversations import ConversationStore
from omnichannel.domain.customers import CustomerStore
from omnichannel.infra.memory_store import InMemoryConversationStore, InMemoryCustomerStore
from omnichannel.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class StoreBundle:
    """Stores usados pela aplicação (mesmo backend para ambos)."""

    customers: CustomerStore
    conversations: ConversationStore


def create_stores(settings: Settings, firestore_client: Any | None = None) -> StoreBundle:
    """Cria stores de clientes e conversas.

    Args:
        settings: configurações (store_backend, coleções, projeto Firestore)
        firestore_client: cliente já instanciado (testes); se None e backend
            for firestore, cria firestore.Client com projeto/database configurados

    Raises:
        ValueError: backend desconhecido
    """
    backend = settings.store_backend.lower()

    if backend == "memory":
        if not settings.is_development:
            logger.warning("memory_store_outside_development", extra={"backend": backend})
        return StoreBundle(
            customers=InMemoryCustomerStore(),
            conversations=InMemoryConversationStore(),
        )

    if backend == "firestore":
        from omnichannel.infra.firestore_store import (
            FirestoreConversationStore,
            FirestoreCustomerStore,
        )

        if firestore_client is None:
            from google.cloud import firestore

            firestore_client = firestore.Client(
                project=settings.firestore_project_id,
                database=settings.firestore_database_id,
            )
        return StoreBundle(
            customers=FirestoreCustomerStore(
                firestore_client,
                customers_collection=settings.customers_collection,
                identifiers_collection=settings.customer_identifiers_collection,
            ),
            conversations=FirestoreConversationStore(
                firestore_client, collection=settings.conversations_collection
            ),
        )

    raise ValueError(f"Backend de store desconhecido: {settings.store_backend}")
