"""Implementações Firestore de CustomerStore e ConversationStore.

Schema:
/customers/{customer_id}
/customer_identifiers/{sha256(company_id|kind|value)}
  └── customer_id, company_id, kind
/conversations/{conversation_id}
  └── /messages/{message_id}

Find-or-create de cliente e takeover rodam em transações Firestore: em
contenção o Firestore reexecuta a transação, que então enxerga o registro
do vencedor.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import UTC, datetime
from typing import Any

from google.api_core.exceptions import AlreadyExists, GoogleAPICallError
from google.cloud import firestore

from omnichannel.domain.conversation_mode import ConversationMode
from omnichannel.domain.conversations import (
    Conversation,
    ConversationNotFoundError,
    ConversationStatus,
    ConversationStore,
    Message,
    ModeChangeResult,
    StoreError,
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


def identifier_doc_id(company_id: str, kind: IdentifierKind | str, value: str) -> str:
    """Id do documento de índice (hash: sem PII no caminho do documento)."""
    raw = f"{company_id}|{kind}|{value}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class FirestoreCustomerStore(CustomerStore):
    """Clientes no Firestore com índice único por identificador canônico."""

    def __init__(
        self,
        client: firestore.Client,
        customers_collection: str = "customers",
        identifiers_collection: str = "customer_identifiers",
    ) -> None:
        self._client = client
        self._customers = customers_collection
        self._identifiers = identifiers_collection

    def _customer_ref(self, customer_id: str) -> firestore.DocumentReference:
        return self._client.collection(self._customers).document(customer_id)

    def _identifier_ref(
        self, company_id: str, kind: IdentifierKind | str, value: str
    ) -> firestore.DocumentReference:
        return self._client.collection(self._identifiers).document(
            identifier_doc_id(company_id, kind, value)
        )

    def find_customer_by_identifier(
        self, company_id: str, kind: IdentifierKind, value: str
    ) -> Customer | None:
        try:
            index = self._identifier_ref(company_id, kind, value).get()
            if not index.exists:
                return None
            customer_id = (index.to_dict() or {}).get("customer_id")
            if not customer_id:
                return None
            return self.get_customer(customer_id)
        except GoogleAPICallError as e:
            logger.error(
                "Falha ao buscar cliente por identificador",
                extra={"identifier_kind": str(kind), "error": type(e).__name__},
            )
            raise StoreError(f"Firestore lookup failed: {type(e).__name__}") from e

    def create_customer(
        self,
        company_id: str,
        identifiers: CanonicalIdentifiers,
        profile: CustomerProfile,
    ) -> CreateCustomerResult:
        index_refs = [
            (kind, value, self._identifier_ref(company_id, kind, value))
            for kind, value in identifiers.items()
        ]

        @firestore.transactional
        def _txn(transaction: firestore.Transaction) -> CreateCustomerResult:
            hits: dict[str, str] = {}
            for kind, _value, ref in index_refs:
                snapshot = ref.get(transaction=transaction)
                if snapshot.exists:
                    hits[str(kind)] = (snapshot.to_dict() or {})["customer_id"]

            existing_id = resolve_existing_customer_id(hits)
            if existing_id is not None:
                existing = self._customer_ref(existing_id).get(transaction=transaction)
                return CreateCustomerResult(
                    customer=Customer(**(existing.to_dict() or {})), created=False
                )

            customer = build_customer(
                new_id(), company_id, identifiers, profile, datetime.now(tz=UTC)
            )
            transaction.create(
                self._customer_ref(customer.id), customer.model_dump(mode="json")
            )
            for kind, _value, ref in index_refs:
                transaction.create(
                    ref,
                    {"customer_id": customer.id, "company_id": company_id, "kind": str(kind)},
                )
            return CreateCustomerResult(customer=customer, created=True)

        try:
            result = _txn(self._client.transaction())
        except AlreadyExists:
            # Outro processo criou o índice entre a leitura e o commit
            found: dict[str, Customer] = {}
            for kind, value in identifiers.items():
                existing = self.find_customer_by_identifier(company_id, kind, value)
                if existing is not None:
                    found[str(kind)] = existing
            existing_id = resolve_existing_customer_id(
                {kind: customer.id for kind, customer in found.items()}
            )
            if existing_id is None:
                raise StoreError("Conflito ao criar cliente sem registro vencedor") from None
            return CreateCustomerResult(customer=next(iter(found.values())), created=False)
        except GoogleAPICallError as e:
            logger.error(
                "Falha ao criar cliente",
                extra={"company_id": company_id, "error": type(e).__name__},
            )
            raise StoreError(f"Firestore create failed: {type(e).__name__}") from e

        logger.info(
            "Cliente criado" if result.created else "Cliente já existia",
            extra={"customer_id": short_id(result.customer.id), "company_id": company_id},
        )
        return result

    def get_customer(self, customer_id: str) -> Customer | None:
        try:
            doc = self._customer_ref(customer_id).get()
        except GoogleAPICallError as e:
            raise StoreError(f"Firestore get failed: {type(e).__name__}") from e
        if not doc.exists:
            return None
        return Customer(**(doc.to_dict() or {}))


class FirestoreConversationStore(ConversationStore):
    """Store de conversas usando Firestore.

    Coleção: conversations/{conversation_id}, mensagens na subcoleção
    messages ordenadas por created_at.
    """

    def __init__(self, client: firestore.Client, collection: str = "conversations") -> None:
        self._client = client
        self._collection = collection

    def _conversation_ref(self, conversation_id: str) -> firestore.DocumentReference:
        return self._client.collection(self._collection).document(conversation_id)

    def _messages_ref(self, conversation_id: str) -> firestore.CollectionReference:
        return self._conversation_ref(conversation_id).collection("messages")

    def create_conversation(self, conversation: Conversation) -> Conversation:
        try:
            self._conversation_ref(conversation.id).create(conversation.model_dump(mode="json"))
        except GoogleAPICallError as e:
            raise StoreError(f"Firestore create failed: {type(e).__name__}") from e
        return conversation

    def get_conversation(self, conversation_id: str) -> Conversation:
        try:
            snapshot = self._conversation_ref(conversation_id).get()
        except GoogleAPICallError as e:
            raise StoreError(f"Firestore get failed: {type(e).__name__}") from e
        return _to_conversation(conversation_id, snapshot)

    def list_active_conversations(self, company_id: str) -> list[Conversation]:
        query = (
            self._client.collection(self._collection)
            .where("company_id", "==", company_id)
            .where("status", "==", ConversationStatus.ACTIVE.value)
        )
        try:
            docs = list(query.stream())
        except GoogleAPICallError as e:
            raise StoreError(f"Firestore query failed: {type(e).__name__}") from e

        conversations = [Conversation(**(doc.to_dict() or {})) for doc in docs]
        return sorted(conversations, key=lambda c: c.updated_at, reverse=True)

    def append_message(self, conversation_id: str, message: Message) -> Message:
        conversation_ref = self._conversation_ref(conversation_id)
        message_ref = self._messages_ref(conversation_id).document(message.id)

        @firestore.transactional
        def _txn(transaction: firestore.Transaction) -> None:
            snapshot = conversation_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise ConversationNotFoundError(conversation_id)
            transaction.create(message_ref, message.model_dump(mode="json"))
            transaction.update(
                conversation_ref, {"updated_at": message.created_at.isoformat()}
            )

        try:
            _txn(self._client.transaction())
        except GoogleAPICallError as e:
            logger.error(
                "Falha ao gravar mensagem",
                extra={"conversation_id": short_id(conversation_id), "error": type(e).__name__},
            )
            raise StoreError(f"Firestore append failed: {type(e).__name__}") from e
        return message

    def get_messages(self, conversation_id: str) -> list[Message]:
        self.get_conversation(conversation_id)
        query = self._messages_ref(conversation_id).order_by("created_at")
        try:
            return [Message(**(doc.to_dict() or {})) for doc in query.stream()]
        except GoogleAPICallError as e:
            raise StoreError(f"Firestore query failed: {type(e).__name__}") from e

    def set_conversation_mode(
        self,
        conversation_id: str,
        mode: ConversationMode,
        operator_id: str | None = None,
    ) -> ModeChangeResult:
        conversation_ref = self._conversation_ref(conversation_id)

        @firestore.transactional
        def _txn(transaction: firestore.Transaction) -> ModeChangeResult:
            snapshot = conversation_ref.get(transaction=transaction)
            current = _to_conversation(conversation_id, snapshot)
            result = apply_mode_change(current, mode, operator_id, datetime.now(tz=UTC))
            if result.changed:
                updated = result.conversation.model_dump(mode="json")
                transaction.update(
                    conversation_ref,
                    {
                        key: updated[key]
                        for key in ("mode", "taken_over_by", "taken_over_at", "updated_at")
                    },
                )
            return result

        try:
            return _txn(self._client.transaction())
        except GoogleAPICallError as e:
            logger.error(
                "Falha ao alterar modo da conversa",
                extra={"conversation_id": short_id(conversation_id), "error": type(e).__name__},
            )
            raise StoreError(f"Firestore transaction failed: {type(e).__name__}") from e


def _to_conversation(conversation_id: str, snapshot: Any) -> Conversation:
    if not snapshot.exists:
        raise ConversationNotFoundError(conversation_id)
    return Conversation(**(snapshot.to_dict() or {}))
