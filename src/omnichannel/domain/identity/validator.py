"""Validação de CPF, CNPJ (dígitos verificadores) e DDD de telefones.

Validação pura, sem side effects. Nunca lança exceção: entrada inválida
retorna False.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from omnichannel.domain.identity.normalizer import (
    CNPJ_LENGTH,
    CPF_LENGTH,
    LANDLINE_LENGTH,
    MOBILE_LENGTH,
    normalize_phone,
    only_digits,
)

# DDDs brasileiros válidos (Anatel)
VALID_AREA_CODES: frozenset[str] = frozenset({
    "11", "12", "13", "14", "15", "16", "17", "18", "19",  # SP
    "21", "22", "24",  # RJ
    "27", "28",  # ES
    "31", "32", "33", "34", "35", "37", "38",  # MG
    "41", "42", "43", "44", "45", "46",  # PR
    "47", "48", "49",  # SC
    "51", "53", "54", "55",  # RS
    "61",  # DF
    "62", "64",  # GO
    "63",  # TO
    "65", "66",  # MT
    "67",  # MS
    "68",  # AC
    "69",  # RO
    "71", "73", "74", "75", "77",  # BA
    "79",  # SE
    "81", "87",  # PE
    "82",  # AL
    "83",  # PB
    "84",  # RN
    "85", "88",  # CE
    "86", "89",  # PI
    "91", "93", "94",  # PA
    "92", "97",  # AM
    "95",  # RR
    "96",  # AP
    "98", "99",  # MA
})

_CNPJ_FIRST_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_SECOND_WEIGHTS = (6, *_CNPJ_FIRST_WEIGHTS)


def _check_digit(digits: str, weights: tuple[int, ...] | range) -> int:
    """Dígito verificador mod 11: resto < 2 vira 0, senão 11 - resto."""
    total = sum(int(d) * w for d, w in zip(digits, weights, strict=True))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def _is_repeated(digits: str) -> bool:
    return len(set(digits)) == 1


def is_valid_cpf(cpf: Any) -> bool:
    """Valida CPF (11 dígitos) pelos dois dígitos verificadores.

    - Rejeita sequências de dígito único (ex.: 11111111111)
    - 1º DV: dígitos[0..8] com pesos 10→2
    - 2º DV: dígitos[0..9] com pesos 11→2
    """
    if not isinstance(cpf, str) or len(cpf) != CPF_LENGTH or not cpf.isdigit():
        return False
    if _is_repeated(cpf):
        return False

    if _check_digit(cpf[:9], range(10, 1, -1)) != int(cpf[9]):
        return False
    return _check_digit(cpf[:10], range(11, 1, -1)) == int(cpf[10])


def is_valid_cnpj(cnpj: Any) -> bool:
    """Valida CNPJ (14 dígitos) pelos dois dígitos verificadores.

    Pesos ciclam 9→2: 1º DV usa 5,4,3,2,9,...,2; 2º DV começa em 6.
    """
    if not isinstance(cnpj, str) or len(cnpj) != CNPJ_LENGTH or not cnpj.isdigit():
        return False
    if _is_repeated(cnpj):
        return False

    if _check_digit(cnpj[:12], _CNPJ_FIRST_WEIGHTS) != int(cnpj[12]):
        return False
    return _check_digit(cnpj[:13], _CNPJ_SECOND_WEIGHTS) == int(cnpj[13])


def is_valid_area_code(phone: str) -> bool:
    """True se o telefone normalizado (10/11 dígitos) tem DDD conhecido."""
    if len(phone) not in (LANDLINE_LENGTH, MOBILE_LENGTH) or not phone.isdigit():
        return False
    return phone[:2] in VALID_AREA_CODES


def is_valid_brazilian_phone(raw: Any) -> bool:
    """Normaliza e valida tamanho + DDD."""
    return is_valid_area_code(normalize_phone(raw))


@dataclass(frozen=True, slots=True)
class DocumentValidation:
    """Resultado da detecção automática de documento."""

    type: Literal["cpf", "cnpj", "invalid"]
    valid: bool
    digits: str | None = None


def validate_document(raw: Any) -> DocumentValidation:
    """Detecta CPF (11 dígitos) ou CNPJ (14 dígitos) e valida."""
    digits = only_digits(raw)
    if len(digits) == CPF_LENGTH:
        return DocumentValidation(type="cpf", valid=is_valid_cpf(digits), digits=digits)
    if len(digits) == CNPJ_LENGTH:
        return DocumentValidation(type="cnpj", valid=is_valid_cnpj(digits), digits=digits)
    return DocumentValidation(type="invalid", valid=False)
