"""Controle de modo da conversa: takeover por operador e roteamento de mensagens.

O core só arbitra escritas originadas por operadores:
- takeover: ai -> human, idempotente (primeiro operador vence)
- mensagem de operador: somente em modo human
- mensagens de agente/cliente: aceitas em qualquer modo
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from omnichannel.application.conversations import (
    TEXT_MAX_LEN,
    ConversationDetail,
    build_message,
)
from omnichannel.domain.conversation_mode import (
    INITIAL_MODE,
    ConversationMode,
    InvalidStateError,
)
from omnichannel.domain.conversations import (
    Channel,
    Conversation,
    ConversationStatus,
    ConversationStore,
    Message,
    MessageMetadata,
    MessageRole,
)
from omnichannel.observability.logging import get_logger
from omnichannel.utils.ids import new_id, short_id

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class TakeoverResult(BaseModel):
    """Posse atual da conversa após o takeover."""

    conversation: Conversation
    taken_over: bool  # False quando outro takeover já havia vencido


@dataclass(slots=True)
class ConversationModeController:
    """Casos de uso sobre o modo da conversa."""

    store: ConversationStore
    max_message_len: int = TEXT_MAX_LEN
    clock: Callable[[], datetime] = field(default=_utcnow)

    def open_conversation(
        self,
        *,
        company_id: str,
        channel: Channel,
        customer_ref: str | None = None,
    ) -> Conversation:
        """Cria conversa no primeiro contato, controlada pelo agente."""
        now = self.clock()
        conversation = Conversation(
            id=new_id(),
            company_id=company_id,
            channel=channel,
            customer_ref=customer_ref,
            status=ConversationStatus.ACTIVE,
            mode=INITIAL_MODE,
            created_at=now,
            updated_at=now,
        )
        created = self.store.create_conversation(conversation)
        logger.info(
            "conversation_opened",
            extra={
                "conversation_id": short_id(created.id),
                "company_id": company_id,
                "channel": str(channel),
            },
        )
        return created

    def takeover(self, conversation_id: str, operator_id: str) -> TakeoverResult:
        """Operador assume a conversa.

        Repetições (mesmo operador ou outro) não alteram a posse: retornam
        os metadados do takeover vencedor.
        """
        if not operator_id:
            raise ValueError("operator_id é obrigatório")

        result = self.store.set_conversation_mode(
            conversation_id, ConversationMode.HUMAN, operator_id
        )
        conversation = result.conversation

        if result.changed:
            logger.info(
                "conversation_taken_over",
                extra={
                    "conversation_id": short_id(conversation_id),
                    "operator_id": operator_id,
                },
            )
        else:
            logger.info(
                "takeover_already_done",
                extra={
                    "conversation_id": short_id(conversation_id),
                    "operator_id": operator_id,
                    "taken_over_by": conversation.taken_over_by,
                },
            )
        return TakeoverResult(conversation=conversation, taken_over=result.changed)

    def post_operator_message(
        self,
        conversation_id: str,
        content: str,
        operator_name: str,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> Message:
        """Mensagem do operador; exige conversa em modo human.

        O modo só avança (ai -> human), então a checagem antes do append
        não fica obsoleta.

        Raises:
            InvalidStateError: conversa ainda em modo ai
        """
        conversation = self.store.get_conversation(conversation_id)
        if conversation.mode != ConversationMode.HUMAN:
            logger.warning(
                "operator_message_rejected",
                extra={
                    "conversation_id": short_id(conversation_id),
                    "mode": str(conversation.mode),
                },
            )
            raise InvalidStateError(conversation_id, conversation.mode, "post_operator_message")

        return self._append(
            conversation_id,
            MessageRole.OPERATOR,
            content,
            operator_name=operator_name,
            metadata=metadata,
        )

    def post_agent_message(
        self,
        conversation_id: str,
        content: str,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> Message:
        """Mensagem do agente automático (aceita em qualquer modo).

        Enviar em modo human é erro do colaborador do agente, não deste core.
        """
        self.store.get_conversation(conversation_id)
        return self._append(conversation_id, MessageRole.AGENT, content, metadata=metadata)

    def post_customer_message(
        self,
        conversation_id: str,
        content: str,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> Message:
        """Mensagem do cliente vinda do canal (aceita em qualquer modo)."""
        self.store.get_conversation(conversation_id)
        return self._append(conversation_id, MessageRole.CUSTOMER, content, metadata=metadata)

    def get_conversation_detail(self, conversation_id: str) -> ConversationDetail:
        conversation = self.store.get_conversation(conversation_id)
        messages = self.store.get_messages(conversation_id)
        return ConversationDetail(conversation=conversation, messages=messages)

    def list_active_conversations(self, company_id: str) -> list[Conversation]:
        return self.store.list_active_conversations(company_id)

    def _append(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        *,
        operator_name: str | None = None,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> Message:
        message = build_message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            now=self.clock(),
            operator_name=operator_name,
            metadata=metadata,
            max_len=self.max_message_len,
        )
        stored = self.store.append_message(conversation_id, message)
        logger.info(
            "message_appended",
            extra={
                "conversation_id": short_id(conversation_id),
                "message_id": short_id(stored.id),
                "role": str(role),
            },
        )
        return stored
