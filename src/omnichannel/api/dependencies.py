"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from omnichannel.application.conversation_mode import ConversationModeController
from omnichannel.application.identity import CustomerIdentityResolver
from omnichannel.config.settings import Settings


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_mode_controller(request: Request) -> ConversationModeController:
    """Retorna o controlador de modo das conversas."""

    return request.app.state.mode_controller


def get_identity_resolver(request: Request) -> CustomerIdentityResolver:
    """Retorna o resolvedor de identidade de clientes."""
    return request.app.state.identity_resolver
