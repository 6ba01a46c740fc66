"""Testes para normalização de identificadores de contato."""

from __future__ import annotations

import pytest

from omnichannel.domain.identity import (
    format_cnpj,
    format_cpf,
    format_phone_for_display,
    normalize_cnpj,
    normalize_cpf,
    normalize_email,
    normalize_phone,
)


class TestNormalizePhone:
    """Telefones brasileiros em vários formatos de entrada."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("+55 11 98765-4321", "11987654321"),
            ("(11) 98765-4321", "11987654321"),
            ("5511987654321", "11987654321"),
            ("011987654321", "11987654321"),
            ("021 11 98765-4321", "11987654321"),
            ("00 11 98765-4321", "11987654321"),
            ("(11) 3456-7890", "1134567890"),
            ("+55 (11) 3456-7890", "1134567890"),
        ],
    )
    def test_formats_resolve_to_area_code_plus_number(self, raw: str, expected: str) -> None:
        assert normalize_phone(raw) == expected

    def test_too_short_returns_empty(self) -> None:
        assert normalize_phone("98765-432") == ""

    @pytest.mark.parametrize("raw", [None, "", "abc", "+--()"])
    def test_empty_or_garbage_returns_empty(self, raw) -> None:
        assert normalize_phone(raw) == ""

    def test_non_string_input_is_coerced(self) -> None:
        assert normalize_phone(11987654321) == "11987654321"

    def test_overlong_keeps_last_eleven_digits(self) -> None:
        assert normalize_phone("99911987654321") == "11987654321"

    @pytest.mark.parametrize(
        "raw",
        ["+55 11 98765-4321", "021 11 98765-4321", "1134567890", "99911987654321", "123"],
    )
    def test_is_idempotent(self, raw: str) -> None:
        once = normalize_phone(raw)
        assert normalize_phone(once) == once

    def test_result_length_is_always_0_10_or_11(self) -> None:
        samples = ["1", "12345678", "1234567890", "12345678901", "0" * 20, "55" * 9]
        for raw in samples:
            assert len(normalize_phone(raw)) in (0, 10, 11)


class TestNormalizeEmail:
    def test_lowercases_and_strips(self) -> None:
        assert normalize_email("  Maria.Silva@Example.COM ") == "maria.silva@example.com"

    def test_none_returns_empty(self) -> None:
        assert normalize_email(None) == ""

    def test_does_not_validate_format(self) -> None:
        assert normalize_email("not-an-email") == "not-an-email"


class TestNormalizeDocuments:
    """CPF/CNPJ: somente dígitos e tamanho exato."""

    def test_cpf_with_mask(self) -> None:
        assert normalize_cpf("111.444.777-35") == "11144477735"

    def test_cpf_wrong_length_returns_none(self) -> None:
        assert normalize_cpf("111.444.777-3") is None
        assert normalize_cpf(None) is None

    def test_cnpj_with_mask(self) -> None:
        assert normalize_cnpj("11.222.333/0001-81") == "11222333000181"

    def test_cnpj_wrong_length_returns_none(self) -> None:
        assert normalize_cnpj("11.222.333/0001") is None


class TestFormatting:
    def test_format_mobile(self) -> None:
        assert format_phone_for_display("+55 11 98765-4321") == "(11) 98765-4321"

    def test_format_landline(self) -> None:
        assert format_phone_for_display("1134567890") == "(11) 3456-7890"

    def test_format_phone_returns_input_when_unparseable(self) -> None:
        assert format_phone_for_display("123") == "123"

    def test_format_cpf(self) -> None:
        assert format_cpf("11144477735") == "111.444.777-35"

    def test_format_cnpj(self) -> None:
        assert format_cnpj("11222333000181") == "11.222.333/0001-81"

    def test_format_document_returns_input_when_wrong_length(self) -> None:
        assert format_cpf("123") == "123"
        assert format_cnpj(None) == ""
