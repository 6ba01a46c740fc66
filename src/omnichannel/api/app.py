"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from omnichannel.api.routes import router
from omnichannel.application.conversation_mode import ConversationModeController
from omnichannel.application.identity import CustomerIdentityResolver
from omnichannel.config.settings import Settings, get_settings
from omnichannel.infra.factory import create_stores
from omnichannel.observability.logging import configure_logging, get_logger
from omnichannel.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, firestore_client: Any | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_store_backend())
    validation_errors.extend(settings.validate_messages())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.correlation_id_header)
    app.include_router(router)

    stores = create_stores(settings, firestore_client=firestore_client)
    app.state.settings = settings
    app.state.stores = stores
    app.state.mode_controller = ConversationModeController(
        store=stores.conversations,
        max_message_len=settings.max_message_length_chars,
    )
    app.state.identity_resolver = CustomerIdentityResolver(store=stores.customers)

    logger.info(
        "app_started",
        extra={"environment": settings.environment, "store_backend": settings.store_backend},
    )
    return app


app = create_app()
