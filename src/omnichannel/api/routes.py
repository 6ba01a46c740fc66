"""Rotas HTTP: painel de operadores e ingresso dos adaptadores de canal."""

from __future__ import annotations

from typing import Any, NoReturn

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from omnichannel.api.dependencies import (
    get_identity_resolver,
    get_mode_controller,
    get_settings,
)
from omnichannel.application.conversation_mode import ConversationModeController
from omnichannel.application.identity import CustomerIdentityResolver, RawContact
from omnichannel.config.settings import Settings
from omnichannel.domain.conversation_mode import InvalidStateError
from omnichannel.domain.conversations import (
    Channel,
    ConversationNotFoundError,
    StoreError,
)
from omnichannel.domain.customers import IdentityConflictError
from omnichannel.observability.logging import get_logger
from omnichannel.observability.middleware import get_correlation_id
from omnichannel.utils.ids import short_id

logger = get_logger(__name__)

router = APIRouter()


class OperatorMessageRequest(BaseModel):
    content: str
    metadata: dict[str, Any] | None = None


class IdentifyCustomerRequest(BaseModel):
    company_id: str = Field(min_length=1)
    contact: RawContact


class OpenConversationRequest(BaseModel):
    company_id: str = Field(min_length=1)
    channel: Channel
    customer_ref: str | None = None


def _raise_http(exc: Exception) -> NoReturn:
    """Traduz erros de domínio/store em HTTPException com correlation_id."""
    correlation_id = get_correlation_id()

    if isinstance(exc, ConversationNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "conversation_not_found", "correlation_id": correlation_id},
        ) from exc

    if isinstance(exc, InvalidStateError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "invalid_state",
                "mode": str(exc.mode),
                "correlation_id": correlation_id,
            },
        ) from exc

    if isinstance(exc, IdentityConflictError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "identity_conflict",
                "matches": exc.matches,
                "correlation_id": correlation_id,
            },
        ) from exc

    if isinstance(exc, StoreError):
        logger.error("store_unavailable", extra={"error": type(exc).__name__})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "store_unavailable",
                "retryable": True,
                "correlation_id": correlation_id,
            },
        ) from exc

    raise HTTPException(
        status_code=422,
        detail={"error": "invalid_request", "message": str(exc), "correlation_id": correlation_id},
    ) from exc


_HANDLED_ERRORS = (
    ConversationNotFoundError,
    InvalidStateError,
    IdentityConflictError,
    StoreError,
    ValueError,
)


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples para Cloud Run."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/customers/identify")
def identify_customer(
    body: IdentifyCustomerRequest,
    response: Response,
    resolver: CustomerIdentityResolver = Depends(get_identity_resolver),
) -> dict[str, Any]:
    """Encontra ou cria o cliente do contato (201 quando criado)."""
    try:
        resolution = resolver.resolve(body.company_id, body.contact)
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)

    if resolution.created:
        response.status_code = status.HTTP_201_CREATED
    return resolution.model_dump(mode="json")


@router.post("/conversations", status_code=status.HTTP_201_CREATED)
def open_conversation(
    body: OpenConversationRequest,
    controller: ConversationModeController = Depends(get_mode_controller),
) -> dict[str, Any]:
    """Abre conversa no primeiro contato do cliente (modo ai)."""
    try:
        conversation = controller.open_conversation(
            company_id=body.company_id,
            channel=body.channel,
            customer_ref=body.customer_ref,
        )
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)
    return conversation.model_dump(mode="json")


@router.get("/conversations/active")
def list_active_conversations(
    company_id: str = Query(..., min_length=1),
    controller: ConversationModeController = Depends(get_mode_controller),
) -> list[dict[str, Any]]:
    """Conversas ativas da empresa, mais recentes primeiro."""
    try:
        conversations = controller.list_active_conversations(company_id)
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)
    return [c.model_dump(mode="json") for c in conversations]


@router.get("/conversations/{conversation_id}")
def get_conversation(
    conversation_id: str,
    controller: ConversationModeController = Depends(get_mode_controller),
) -> dict[str, Any]:
    """Conversa com todas as mensagens em ordem cronológica."""
    try:
        detail = controller.get_conversation_detail(conversation_id)
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)
    return detail.model_dump(mode="json")


@router.post("/conversations/{conversation_id}/takeover")
def takeover_conversation(
    conversation_id: str,
    x_operator_id: str = Header(..., min_length=1),
    controller: ConversationModeController = Depends(get_mode_controller),
) -> dict[str, Any]:
    """Operador assume a conversa; repetições retornam a posse vigente."""
    try:
        result = controller.takeover(conversation_id, x_operator_id)
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)

    logger.info(
        "takeover_requested",
        extra={
            "conversation_id": short_id(conversation_id),
            "taken_over": result.taken_over,
        },
    )
    return result.conversation.model_dump(mode="json")


@router.post("/conversations/{conversation_id}/operator-message")
def post_operator_message(
    conversation_id: str,
    body: OperatorMessageRequest,
    x_operator_id: str = Header(..., min_length=1),
    x_operator_name: str | None = Header(None),
    controller: ConversationModeController = Depends(get_mode_controller),
) -> dict[str, Any]:
    """Mensagem do operador (somente após takeover)."""
    operator_name = (x_operator_name or "").strip() or x_operator_id
    try:
        message = controller.post_operator_message(
            conversation_id,
            body.content,
            operator_name=operator_name,
            metadata=body.metadata,
        )
    except _HANDLED_ERRORS as exc:
        _raise_http(exc)
    return message.model_dump(mode="json")
