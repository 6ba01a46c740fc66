"""Contratos de domínio para conversas e mensagens."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from omnichannel.domain.conversation_mode import (
    INITIAL_MODE,
    ConversationMode,
    InvalidStateError,
    event_for_target,
    validate_transition,
)


class Channel(StrEnum):
    """Canais de entrada suportados."""

    CHATWEB = "chatweb"
    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"


class ConversationStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"


class MessageRole(StrEnum):
    """Autor da mensagem."""

    CUSTOMER = "customer"
    AGENT = "agent"
    OPERATOR = "operator"


class Conversation(BaseModel):
    """Conversa entre cliente e empresa.

    Invariante: taken_over_by e taken_over_at estão ambos presentes se e
    somente se mode == human.
    """

    id: str
    company_id: str
    channel: Channel
    customer_ref: str | None = None
    status: ConversationStatus = ConversationStatus.ACTIVE
    mode: ConversationMode = INITIAL_MODE
    taken_over_by: str | None = None
    taken_over_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_takeover_fields(self) -> Conversation:
        has_by = self.taken_over_by is not None
        has_at = self.taken_over_at is not None
        is_human = self.mode == ConversationMode.HUMAN
        if not (has_by == has_at == is_human):
            raise ValueError(
                "taken_over_by/taken_over_at devem estar presentes se e somente se mode=human"
            )
        return self


class MessageMetadata(BaseModel):
    """Extensão estruturada da mensagem.

    product_image é a única chave conhecida; o resto vai em `extra`.
    """

    model_config = ConfigDict(frozen=True)

    product_image: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """Mensagem persistida (append-only, imutável)."""

    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str
    role: MessageRole
    content: str
    operator_name: str | None = None
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)
    created_at: datetime

    @model_validator(mode="after")
    def _check_operator_name(self) -> Message:
        if self.role == MessageRole.OPERATOR and not self.operator_name:
            raise ValueError("operator_name é obrigatório quando role=operator")
        return self


class ModeChangeResult(BaseModel):
    """Resultado de compare-and-set do modo."""

    conversation: Conversation
    changed: bool


class ConversationNotFoundError(Exception):
    """Conversa inexistente."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversa não encontrada: {conversation_id}")


class StoreError(Exception):
    """Falha do backend de armazenamento (conectividade, constraint).

    O core não faz retry através de fronteiras de atomicidade; o chamador
    decide se repete.
    """

    retryable = True


def apply_mode_change(
    conversation: Conversation,
    mode: ConversationMode,
    operator_id: str | None,
    now: datetime,
) -> ModeChangeResult:
    """Aplica a mudança de modo sobre o snapshot lido pelo store.

    Stores chamam esta função dentro da sua fronteira atômica (lock,
    transação). Se a conversa já está no modo alvo, nada muda e a posse
    atual é preservada (primeiro a escrever vence).

    Raises:
        InvalidStateError: transição não prevista na tabela de modos
        ValueError: takeover sem operator_id
    """
    if conversation.mode == mode:
        return ModeChangeResult(conversation=conversation, changed=False)

    event = event_for_target(mode)
    valid, next_mode, _reason = (
        validate_transition(conversation.mode, event) if event else (False, None, "")
    )
    if not valid or next_mode != mode:
        raise InvalidStateError(conversation.id, conversation.mode, f"change_mode:{mode}")

    updates: dict[str, Any] = {"mode": mode, "updated_at": now}
    if mode == ConversationMode.HUMAN:
        if not operator_id:
            raise ValueError("operator_id é obrigatório para takeover")
        updates["taken_over_by"] = operator_id
        updates["taken_over_at"] = now

    updated = Conversation.model_validate({**conversation.model_dump(), **updates})
    return ModeChangeResult(conversation=updated, changed=True)


class ConversationStore(Protocol):
    """Porta de armazenamento de conversas."""

    def create_conversation(self, conversation: Conversation) -> Conversation:
        """Persiste nova conversa."""
        ...

    def get_conversation(self, conversation_id: str) -> Conversation:
        """Retorna conversa ou lança ConversationNotFoundError."""
        ...

    def list_active_conversations(self, company_id: str) -> list[Conversation]:
        """Conversas ativas da empresa, mais recentes primeiro."""
        ...

    def append_message(self, conversation_id: str, message: Message) -> Message:
        """Insere mensagem (append-only)."""
        ...

    def get_messages(self, conversation_id: str) -> list[Message]:
        """Mensagens em ordem cronológica."""
        ...

    def set_conversation_mode(
        self,
        conversation_id: str,
        mode: ConversationMode,
        operator_id: str | None = None,
    ) -> ModeChangeResult:
        """Compare-and-set atômico do modo (ver apply_mode_change)."""
        ...
