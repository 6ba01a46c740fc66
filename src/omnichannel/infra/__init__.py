"""Implementações de persistência (memória e Firestore)."""

from omnichannel.infra.factory import StoreBundle, create_stores
from omnichannel.infra.memory_store import InMemoryConversationStore, InMemoryCustomerStore

__all__ = [
    "InMemoryConversationStore",
    "InMemoryCustomerStore",
    "StoreBundle",
    "create_stores",
]
