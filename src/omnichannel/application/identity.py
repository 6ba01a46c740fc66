"""Resolução de identidade de cliente entre canais.

Fluxo:
1. normaliza e valida os identificadores brutos do canal
2. busca cliente por cada chave, em ordem de prioridade (phone, email, cpf, cnpj)
3. um único cliente encontrado -> retorna; vários -> IdentityConflictError
4. nenhum -> find-or-create atômico no store
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from omnichannel.domain.customers import (
    CanonicalIdentifiers,
    Customer,
    CustomerProfile,
    CustomerStore,
    CustomerType,
    IdentifierKind,
    IdentityConflictError,
)
from omnichannel.domain.identity import (
    is_valid_area_code,
    is_valid_cnpj,
    is_valid_cpf,
    normalize_cnpj,
    normalize_cpf,
    normalize_email,
    normalize_phone,
)
from omnichannel.observability.logging import get_logger
from omnichannel.utils.ids import mask_pii, short_id

logger = get_logger(__name__)


class RawContact(BaseModel):
    """Dados de contato como chegam do adaptador de canal."""

    phone: str | None = None
    email: str | None = None
    cpf: str | None = None
    cnpj: str | None = None
    name: str | None = None
    customer_type: CustomerType = CustomerType.INDIVIDUAL
    trade_name: str | None = None
    company_name: str | None = None
    channel: str | None = None

    def to_profile(self) -> CustomerProfile:
        return CustomerProfile(
            name=(self.name or "").strip(),
            customer_type=self.customer_type,
            trade_name=self.trade_name,
            company_name=self.company_name,
            phone_raw=self.phone,
            channel=self.channel,
        )


class IdentityResolution(BaseModel):
    """Resultado da resolução de identidade."""

    identifiers: CanonicalIdentifiers
    customer: Customer
    created: bool
    matched_by: IdentifierKind | None = None
    phone_area_code_valid: bool | None = None


def normalize_customer_identifiers(
    raw: RawContact | Mapping[str, Any],
) -> CanonicalIdentifiers:
    """Normaliza todos os identificadores; mantém só os que passam na validação.

    - phone: presente se resolver para 10 ou 11 dígitos
    - email: presente se não vazio após normalização
    - cpf/cnpj: presentes somente com dígitos verificadores válidos
    """
    data = raw.model_dump() if isinstance(raw, RawContact) else dict(raw)

    phone = normalize_phone(data.get("phone")) if data.get("phone") else ""
    email = normalize_email(data.get("email")) if data.get("email") else ""
    cpf = normalize_cpf(data.get("cpf"))
    cnpj = normalize_cnpj(data.get("cnpj"))

    return CanonicalIdentifiers(
        phone=phone or None,
        email=email or None,
        cpf=cpf if cpf and is_valid_cpf(cpf) else None,
        cnpj=cnpj if cnpj and is_valid_cnpj(cnpj) else None,
    )


@dataclass(slots=True)
class CustomerIdentityResolver:
    """Encontra ou cria o cliente correspondente a um contato de qualquer canal."""

    store: CustomerStore

    def resolve(
        self, company_id: str, raw: RawContact | Mapping[str, Any]
    ) -> IdentityResolution:
        """Resolve o contato para um único cliente.

        Raises:
            ValueError: nenhum identificador sobreviveu à normalização
            IdentityConflictError: identificadores apontam para clientes distintos
        """
        contact = raw if isinstance(raw, RawContact) else RawContact.model_validate(dict(raw))
        identifiers = normalize_customer_identifiers(contact)
        if identifiers.is_empty:
            raise ValueError("Nenhum identificador válido para o contato")

        area_code_valid = None
        if identifiers.phone:
            area_code_valid = is_valid_area_code(identifiers.phone)
            if not area_code_valid:
                logger.warning(
                    "phone_area_code_invalid",
                    extra={"company_id": company_id, "phone": mask_pii(identifiers.phone)},
                )

        matched_by, customer = self._find_existing(company_id, identifiers)
        if customer is not None:
            logger.info(
                "customer_matched",
                extra={
                    "company_id": company_id,
                    "customer_id": short_id(customer.id),
                    "matched_by": str(matched_by),
                },
            )
            return IdentityResolution(
                identifiers=identifiers,
                customer=customer,
                created=False,
                matched_by=matched_by,
                phone_area_code_valid=area_code_valid,
            )

        try:
            result = self.store.create_customer(company_id, identifiers, contact.to_profile())
        except IdentityConflictError as exc:
            # Clientes distintos indexados entre as buscas e o create
            logger.warning(
                "customer_identity_conflict",
                extra={
                    "company_id": company_id,
                    "customer_ids": sorted(short_id(cid) for cid in set(exc.matches.values())),
                },
            )
            raise
        logger.info(
            "customer_created" if result.created else "customer_created_concurrently",
            extra={
                "company_id": company_id,
                "customer_id": short_id(result.customer.id),
                "identifier_kinds": [str(kind) for kind, _ in identifiers.items()],
            },
        )
        return IdentityResolution(
            identifiers=identifiers,
            customer=result.customer,
            created=result.created,
            phone_area_code_valid=area_code_valid,
        )

    def _find_existing(
        self, company_id: str, identifiers: CanonicalIdentifiers
    ) -> tuple[IdentifierKind | None, Customer | None]:
        """Busca por todas as chaves, em prioridade, detectando conflitos."""
        matches: dict[IdentifierKind, Customer] = {}
        for kind, value in identifiers.items():
            found = self.store.find_customer_by_identifier(company_id, kind, value)
            if found is not None:
                matches[kind] = found

        if not matches:
            return None, None

        distinct = {customer.id for customer in matches.values()}
        if len(distinct) > 1:
            conflict = {str(kind): customer.id for kind, customer in matches.items()}
            logger.warning(
                "customer_identity_conflict",
                extra={
                    "company_id": company_id,
                    "customer_ids": sorted(short_id(cid) for cid in distinct),
                },
            )
            raise IdentityConflictError(conflict)

        # dict preserva a ordem de inserção (= prioridade)
        first_kind = next(iter(matches))
        return first_kind, matches[first_kind]
