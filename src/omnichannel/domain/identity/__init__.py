"""Identidade de cliente: normalização e validação de identificadores.

Exporta:
- normalize_phone / normalize_email / normalize_cpf / normalize_cnpj
- is_valid_cpf / is_valid_cnpj / is_valid_area_code
- VALID_AREA_CODES: DDDs brasileiros
"""

from omnichannel.domain.identity.normalizer import (
    format_cnpj,
    format_cpf,
    format_phone_for_display,
    normalize_cnpj,
    normalize_cpf,
    normalize_email,
    normalize_phone,
)
from omnichannel.domain.identity.validator import (
    VALID_AREA_CODES,
    DocumentValidation,
    is_valid_area_code,
    is_valid_brazilian_phone,
    is_valid_cnpj,
    is_valid_cpf,
    validate_document,
)

__all__ = [
    "normalize_phone",
    "normalize_email",
    "normalize_cpf",
    "normalize_cnpj",
    "format_phone_for_display",
    "format_cpf",
    "format_cnpj",
    "is_valid_cpf",
    "is_valid_cnpj",
    "is_valid_area_code",
    "is_valid_brazilian_phone",
    "validate_document",
    "DocumentValidation",
    "VALID_AREA_CODES",
]
