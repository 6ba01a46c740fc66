"""Geradores de identificadores e mascaramento de PII para logs."""

from __future__ import annotations

import uuid


def new_id() -> str:
    """Gera um identificador único (uuid4) para registros do core."""

    return str(uuid.uuid4())


def short_id(value: str | None) -> str:
    """Trunca ids longos para logs ("abcd1234...")."""

    if not value:
        return ""
    return value[:8] + "..." if len(value) > 8 else value


def mask_pii(value: str | None) -> str | None:
    """Mascara PII (telefone, email, CPF/CNPJ) para logs.

    Mantém apenas os 2 primeiros e 2 últimos caracteres.
    """
    if value is None:
        return None
    if len(value) <= 4:
        return "***"
    return value[:2] + "***" + value[-2:]
