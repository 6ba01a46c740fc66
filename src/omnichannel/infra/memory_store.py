"""Stores em memória (apenas dev/testes).

⚠️ Não usar em produção!
- Não persiste entre restarts
- Não funciona com múltiplas instâncias
- Atomicidade garantida apenas dentro do processo (threading.Lock)
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import UTC, datetime

from omnichannel.domain.conversation_mode import ConversationMode
from omnichannel.domain.conversations import (
    Conversation,
    ConversationNotFoundError,
    ConversationStatus,
    ConversationStore,
    Message,
    ModeChangeResult,
    apply_mode_change,
)
from omnichannel.domain.customers import (
    CanonicalIdentifiers,
    CreateCustomerResult,
    Customer,
    CustomerProfile,
    CustomerStore,
    IdentifierKind,
    build_customer,
    resolve_existing_customer_id,
)
from omnichannel.observability.logging import get_logger
from omnichannel.utils.ids import new_id, short_id

logger: logging.Logger = get_logger(__name__)


class InMemoryCustomerStore(CustomerStore):
    """Clientes em memória com índice único por (empresa, tipo, valor)."""

    def __init__(self) -> None:
        self._customers: dict[str, Customer] = {}
        self._index: dict[tuple[str, str, str], str] = {}
        self._lock = threading.Lock()

    def find_customer_by_identifier(
        self, company_id: str, kind: IdentifierKind, value: str
    ) -> Customer | None:
        with self._lock:
            customer_id = self._index.get((company_id, str(kind), value))
            return self._customers.get(customer_id) if customer_id else None

    def create_customer(
        self,
        company_id: str,
        identifiers: CanonicalIdentifiers,
        profile: CustomerProfile,
    ) -> CreateCustomerResult:
        keys = [(company_id, str(kind), value) for kind, value in identifiers.items()]
        with self._lock:
            hits = {key[1]: self._index[key] for key in keys if key in self._index}
            existing_id = resolve_existing_customer_id(hits)
            if existing_id is not None:
                logger.debug(
                    "Customer already exists (in-memory)",
                    extra={"customer_id": short_id(existing_id)},
                )
                return CreateCustomerResult(customer=self._customers[existing_id], created=False)

            customer = build_customer(
                new_id(), company_id, identifiers, profile, datetime.now(tz=UTC)
            )
            self._customers[customer.id] = customer
            for key in keys:
                self._index[key] = customer.id

        logger.debug("Customer created (in-memory)", extra={"customer_id": short_id(customer.id)})
        return CreateCustomerResult(customer=customer, created=True)

    def get_customer(self, customer_id: str) -> Customer | None:
        with self._lock:
            return self._customers.get(customer_id)


class InMemoryConversationStore(ConversationStore):
    """Conversas e mensagens em memória; CAS do modo sob lock."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = defaultdict(list)
        self._lock = threading.Lock()

    def create_conversation(self, conversation: Conversation) -> Conversation:
        with self._lock:
            self._conversations[conversation.id] = conversation
        return conversation

    def get_conversation(self, conversation_id: str) -> Conversation:
        with self._lock:
            return self._get(conversation_id)

    def list_active_conversations(self, company_id: str) -> list[Conversation]:
        with self._lock:
            active = [
                c
                for c in self._conversations.values()
                if c.company_id == company_id and c.status == ConversationStatus.ACTIVE
            ]
        return sorted(active, key=lambda c: c.updated_at, reverse=True)

    def append_message(self, conversation_id: str, message: Message) -> Message:
        with self._lock:
            conversation = self._get(conversation_id)
            self._messages[conversation_id].append(message)
            self._conversations[conversation_id] = conversation.model_copy(
                update={"updated_at": message.created_at}
            )
        return message

    def get_messages(self, conversation_id: str) -> list[Message]:
        with self._lock:
            self._get(conversation_id)
            return list(self._messages.get(conversation_id, []))

    def set_conversation_mode(
        self,
        conversation_id: str,
        mode: ConversationMode,
        operator_id: str | None = None,
    ) -> ModeChangeResult:
        with self._lock:
            current = self._get(conversation_id)
            result = apply_mode_change(current, mode, operator_id, datetime.now(tz=UTC))
            if result.changed:
                self._conversations[conversation_id] = result.conversation
        return result

    def _get(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

