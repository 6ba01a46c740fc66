"""Máquina de estados do modo da conversa (agente automático x operador).

- MODE_TRANSITIONS[(modo_atual, evento)] = próximo modo
- HUMAN é terminal neste core (não há devolução ao agente)
- Validação pura: sem side effects
"""

from __future__ import annotations

from enum import StrEnum


class ConversationMode(StrEnum):
    """Quem controla a conversa."""

    AI = "ai"
    HUMAN = "human"


class ModeEvent(StrEnum):
    """Eventos que alteram o modo."""

    TAKEOVER = "takeover"


INITIAL_MODE = ConversationMode.AI

MODE_TRANSITIONS: dict[tuple[ConversationMode, ModeEvent], ConversationMode] = {
    (ConversationMode.AI, ModeEvent.TAKEOVER): ConversationMode.HUMAN,
}

TERMINAL_MODES = frozenset({ConversationMode.HUMAN})


class InvalidStateError(Exception):
    """Operação não permitida no modo atual da conversa."""

    def __init__(self, conversation_id: str, mode: ConversationMode, operation: str) -> None:
        self.conversation_id = conversation_id
        self.mode = mode
        self.operation = operation
        super().__init__(f"{operation} não permitido com a conversa em modo '{mode}'")


def validate_transition(
    current: ConversationMode, event: ModeEvent
) -> tuple[bool, ConversationMode | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, next_mode, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    if current in TERMINAL_MODES:
        return False, None, f"Terminal mode {current} has no transitions"

    next_mode = MODE_TRANSITIONS.get((current, event))
    if next_mode is None:
        return False, None, f"No transition from {current} on event {event}"
    return True, next_mode, ""


def event_for_target(target: ConversationMode) -> ModeEvent | None:
    """Evento que leva ao modo alvo (None se nenhum leva)."""
    for (_, event), next_mode in MODE_TRANSITIONS.items():
        if next_mode == target:
            return event
    return None
