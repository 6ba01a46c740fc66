"""Normalização de identificadores de contato (telefone, email, CPF, CNPJ).

Funções puras: nunca lançam exceção. Entrada malformada degrada para
resultado vazio (`""` ou `None`).

Exemplos de telefone:
    "+55 11 98765-4321"  -> "11987654321"
    "(11) 98765-4321"    -> "11987654321"
    "011987654321"       -> "11987654321"  (prefixo de tronco)
    "021 11 98765-4321"  -> "11987654321"  (código de operadora)
    "00 11 98765-4321"   -> "11987654321"  (prefixo internacional)
"""

from __future__ import annotations

import re
from typing import Any

_NON_DIGITS = re.compile(r"\D")
# Seleção de operadora: 0 + código de 2 dígitos (ex.: 014, 015, 021, 031)
_CARRIER_PREFIX = re.compile(r"^0[1-9]\d")

COUNTRY_CODE = "55"
MOBILE_LENGTH = 11
LANDLINE_LENGTH = 10
CPF_LENGTH = 11
CNPJ_LENGTH = 14


def only_digits(raw: Any) -> str:
    """Remove tudo que não é dígito; entrada não textual vira ""."""
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raw = str(raw)
    return _NON_DIGITS.sub("", raw)


def normalize_phone(raw: Any) -> str:
    """Normaliza telefone brasileiro para DDD + número (somente dígitos).

    Resultado tem sempre 0, 10 (fixo) ou 11 (celular) dígitos e é ponto
    fixo: normalize_phone(normalize_phone(x)) == normalize_phone(x).
    """
    cleaned = only_digits(raw)

    if len(cleaned) > MOBILE_LENGTH and cleaned.startswith(COUNTRY_CODE):
        cleaned = cleaned[len(COUNTRY_CODE):]

    if (
        len(cleaned) > MOBILE_LENGTH
        and _CARRIER_PREFIX.match(cleaned)
        and len(cleaned) - 3 >= LANDLINE_LENGTH
    ):
        cleaned = cleaned[3:]

    while len(cleaned) > MOBILE_LENGTH and cleaned.startswith("00"):
        cleaned = cleaned[2:]

    while len(cleaned) > MOBILE_LENGTH and cleaned.startswith("0"):
        cleaned = cleaned[1:]

    if len(cleaned) in (LANDLINE_LENGTH, MOBILE_LENGTH):
        return cleaned

    # Recuperação best-effort: últimos 11 dígitos (celular)
    if len(cleaned) > MOBILE_LENGTH:
        return cleaned[-MOBILE_LENGTH:]
    return ""


def normalize_email(raw: Any) -> str:
    """Email em minúsculas e sem espaços nas extremidades (sem validação)."""
    if raw is None:
        return ""
    return str(raw).strip().lower()


def normalize_cpf(raw: Any) -> str | None:
    """CPF somente dígitos; None se não restarem exatamente 11."""
    cleaned = only_digits(raw)
    return cleaned if len(cleaned) == CPF_LENGTH else None


def normalize_cnpj(raw: Any) -> str | None:
    """CNPJ somente dígitos; None se não restarem exatamente 14."""
    cleaned = only_digits(raw)
    return cleaned if len(cleaned) == CNPJ_LENGTH else None


def format_phone_for_display(raw: Any) -> str:
    """Formata telefone para exibição.

    "11987654321" -> "(11) 98765-4321"
    "1134567890"  -> "(11) 3456-7890"

    Retorna a entrada sem alteração quando não normaliza.
    """
    phone = normalize_phone(raw)
    if len(phone) == MOBILE_LENGTH:
        return f"({phone[:2]}) {phone[2:7]}-{phone[7:]}"
    if len(phone) == LANDLINE_LENGTH:
        return f"({phone[:2]}) {phone[2:6]}-{phone[6:]}"
    return "" if raw is None else str(raw)


def format_cpf(raw: Any) -> str:
    """Formata CPF: 12345678901 -> 123.456.789-01."""
    cpf = normalize_cpf(raw)
    if cpf is None:
        return "" if raw is None else str(raw)
    return f"{cpf[:3]}.{cpf[3:6]}.{cpf[6:9]}-{cpf[9:]}"


def format_cnpj(raw: Any) -> str:
    """Formata CNPJ: 12345678000190 -> 12.345.678/0001-90."""
    cnpj = normalize_cnpj(raw)
    if cnpj is None:
        return "" if raw is None else str(raw)
    return f"{cnpj[:2]}.{cnpj[2:5]}.{cnpj[5:8]}/{cnpj[8:12]}-{cnpj[12:]}"
