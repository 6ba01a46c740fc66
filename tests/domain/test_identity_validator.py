"""Testes para validação de CPF, CNPJ e DDD."""

from __future__ import annotations

import pytest

from omnichannel.domain.identity import (
    VALID_AREA_CODES,
    is_valid_area_code,
    is_valid_brazilian_phone,
    is_valid_cnpj,
    is_valid_cpf,
    validate_document,
)


class TestCpf:
    def test_valid_cpf(self) -> None:
        assert is_valid_cpf("11144477735") is True
        assert is_valid_cpf("12345678909") is True

    def test_wrong_check_digit(self) -> None:
        assert is_valid_cpf("12345678900") is False
        assert is_valid_cpf("11144477736") is False

    @pytest.mark.parametrize("digit", "0123456789")
    def test_repeated_digits_rejected(self, digit: str) -> None:
        assert is_valid_cpf(digit * 11) is False

    @pytest.mark.parametrize("raw", ["111.444.777-35", "1114447773", None, 11144477735])
    def test_malformed_input_rejected(self, raw) -> None:
        assert is_valid_cpf(raw) is False


class TestCnpj:
    def test_valid_cnpj(self) -> None:
        assert is_valid_cnpj("11222333000181") is True

    def test_wrong_check_digit(self) -> None:
        assert is_valid_cnpj("11222333000182") is False

    def test_repeated_digits_rejected(self) -> None:
        assert is_valid_cnpj("1" * 14) is False

    @pytest.mark.parametrize("raw", ["11.222.333/0001-81", "1122233300018", None])
    def test_malformed_input_rejected(self, raw) -> None:
        assert is_valid_cnpj(raw) is False


class TestAreaCodes:
    def test_has_67_codes(self) -> None:
        assert len(VALID_AREA_CODES) == 67

    @pytest.mark.parametrize("code", ["20", "23", "25", "26", "29", "30", "36", "39", "52"])
    def test_unassigned_codes_absent(self, code: str) -> None:
        assert code not in VALID_AREA_CODES

    def test_known_area_code(self) -> None:
        assert is_valid_area_code("11987654321") is True
        assert is_valid_area_code("6132345678") is True

    def test_unknown_area_code(self) -> None:
        assert is_valid_area_code("20987654321") is False

    def test_requires_normalized_phone(self) -> None:
        assert is_valid_area_code("+55 11 98765-4321") is False
        assert is_valid_area_code("") is False

    def test_brazilian_phone_normalizes_first(self) -> None:
        assert is_valid_brazilian_phone("+55 (11) 98765-4321") is True
        assert is_valid_brazilian_phone("(20) 98765-4321") is False
        assert is_valid_brazilian_phone("123") is False


class TestValidateDocument:
    def test_detects_cpf(self) -> None:
        result = validate_document("111.444.777-35")
        assert result.type == "cpf"
        assert result.valid is True
        assert result.digits == "11144477735"

    def test_detects_invalid_cnpj(self) -> None:
        result = validate_document("11.222.333/0001-00")
        assert result.type == "cnpj"
        assert result.valid is False

    def test_unknown_length(self) -> None:
        result = validate_document("12345")
        assert result.type == "invalid"
        assert result.valid is False
        assert result.digits is None
