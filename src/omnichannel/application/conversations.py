"""Construção e sanitização de mensagens antes da persistência."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from omnichannel.domain.conversations import (
    Conversation,
    Message,
    MessageMetadata,
    MessageRole,
)
from omnichannel.utils.ids import new_id

TEXT_MAX_LEN = 4000
TRUNCATION_MARKER = "…[truncated]"


def sanitize_text(text: str, max_len: int = TEXT_MAX_LEN) -> str:
    """Sanitiza o texto para armazenamento.

    Regras:
    - strip nas extremidades
    - manter quebras de linha
    - colapsar excesso de whitespace em cada linha
    - limitar tamanho a max_len
    """

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = []
    blank_streak = 0

    for raw_line in normalized.split("\n"):
        collapsed = " ".join(raw_line.split())
        if collapsed == "":
            blank_streak += 1
            if blank_streak > 1:
                continue
            lines.append("")
            continue

        blank_streak = 0
        lines.append(collapsed)

    normalized = "\n".join(lines).strip()

    if len(normalized) > max_len:
        limit = max_len - len(TRUNCATION_MARKER)
        normalized = f"{normalized[:limit]}{TRUNCATION_MARKER}"

    return normalized


def build_metadata(raw: MessageMetadata | dict[str, Any] | None) -> MessageMetadata:
    """Converte o mapa aberto do canal em MessageMetadata.

    Aceita `productImage` (formato do canal) ou `product_image`, com
    precedência para `productImage`; demais chaves vão para `extra`. Uma
    chave `extra` só é mesclada quando é um mapa; caso contrário fica como
    chave comum.
    """
    if raw is None:
        return MessageMetadata()
    if isinstance(raw, MessageMetadata):
        return raw

    data = dict(raw)
    camel = data.pop("productImage", None)
    snake = data.pop("product_image", None)
    product_image = camel or snake

    extra: dict[str, Any] = {}
    if isinstance(data.get("extra"), Mapping):
        extra = dict(data.pop("extra"))
    return MessageMetadata(product_image=product_image, extra={**extra, **data})


def build_message(
    *,
    conversation_id: str,
    role: MessageRole,
    content: str,
    now: datetime,
    operator_name: str | None = None,
    metadata: MessageMetadata | dict[str, Any] | None = None,
    max_len: int = TEXT_MAX_LEN,
) -> Message:
    """Cria mensagem normalizada pronta para persistência.

    Raises:
        ValueError: conteúdo vazio após sanitização
    """
    content = sanitize_text(content, max_len=max_len)
    if not content:
        raise ValueError("Conteúdo da mensagem vazio")

    return Message(
        id=new_id(),
        conversation_id=conversation_id,
        role=role,
        content=content,
        operator_name=operator_name,
        metadata=build_metadata(metadata),
        created_at=now,
    )


class ConversationDetail(BaseModel):
    """Conversa com o histórico completo de mensagens."""

    conversation: Conversation
    messages: list[Message] = Field(default_factory=list)
