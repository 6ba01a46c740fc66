"""Contratos de domínio para clientes e seus identificadores canônicos.

O registro de cliente pertence à camada de persistência; o core apenas
calcula as chaves canônicas usadas para encontrá-lo ou criá-lo.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field


class IdentifierKind(StrEnum):
    """Tipos de identificador canônico, em ordem de prioridade de matching."""

    PHONE = "phone"
    EMAIL = "email"
    CPF = "cpf"
    CNPJ = "cnpj"


IDENTIFIER_PRIORITY: tuple[IdentifierKind, ...] = (
    IdentifierKind.PHONE,
    IdentifierKind.EMAIL,
    IdentifierKind.CPF,
    IdentifierKind.CNPJ,
)


class CustomerType(StrEnum):
    """Pessoa física ou jurídica."""

    INDIVIDUAL = "individual"
    BUSINESS = "business"


class CanonicalIdentifiers(BaseModel):
    """Conjunto de identificadores normalizados e validados.

    Um campo só está presente se passou por normalização e validação.
    """

    phone: str | None = None
    email: str | None = None
    cpf: str | None = None
    cnpj: str | None = None

    def items(self) -> Iterator[tuple[IdentifierKind, str]]:
        """Itera (tipo, valor) presentes, na ordem de prioridade."""
        for kind in IDENTIFIER_PRIORITY:
            value = getattr(self, kind.value)
            if value:
                yield kind, value

    @property
    def is_empty(self) -> bool:
        return next(self.items(), None) is None


class ShippingAddress(BaseModel):
    """Último endereço de entrega conhecido."""

    street: str | None = None
    complement: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


class CustomerProfile(BaseModel):
    """Atributos informados pelo canal no primeiro contato."""

    name: str = ""
    customer_type: CustomerType = CustomerType.INDIVIDUAL
    trade_name: str | None = None
    company_name: str | None = None
    phone_raw: str | None = None
    channel: str | None = None


class Customer(BaseModel):
    """Registro de cliente (um por identidade canônica, por empresa)."""

    id: str
    company_id: str
    name: str = ""
    customer_type: CustomerType = CustomerType.INDIVIDUAL
    trade_name: str | None = None
    company_name: str | None = None

    # Identificadores canônicos
    phone: str | None = None
    phone_raw: str | None = None
    email: str | None = None
    cpf: str | None = None
    cnpj: str | None = None

    shipping_address: ShippingAddress | None = None
    total_orders: int = 0
    total_spent: int = 0  # centavos

    # Rastreamento omnichannel
    first_seen_channel: str | None = None
    channels: list[str] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime

    @property
    def identifiers(self) -> CanonicalIdentifiers:
        return CanonicalIdentifiers(
            phone=self.phone, email=self.email, cpf=self.cpf, cnpj=self.cnpj
        )


def build_customer(
    customer_id: str,
    company_id: str,
    identifiers: CanonicalIdentifiers,
    profile: CustomerProfile,
    now: datetime,
) -> Customer:
    """Monta novo Customer a partir das chaves canônicas e do perfil do canal."""
    return Customer(
        id=customer_id,
        company_id=company_id,
        name=profile.name,
        customer_type=profile.customer_type,
        trade_name=profile.trade_name,
        company_name=profile.company_name,
        phone=identifiers.phone,
        phone_raw=profile.phone_raw,
        email=identifiers.email,
        cpf=identifiers.cpf,
        cnpj=identifiers.cnpj,
        first_seen_channel=profile.channel,
        channels=[profile.channel] if profile.channel else [],
        created_at=now,
        updated_at=now,
    )


class CreateCustomerResult(BaseModel):
    """Resultado de find-or-create atômico."""

    customer: Customer
    created: bool


class IdentityConflictError(Exception):
    """Identificadores fornecidos apontam para clientes diferentes.

    A política de merge fica com o store/chamador; o core apenas reporta.
    """

    def __init__(self, matches: dict[str, str]) -> None:
        self.matches = matches
        super().__init__(
            f"Identificadores apontam para {len(set(matches.values()))} clientes distintos"
        )


def resolve_existing_customer_id(hits: dict[str, str]) -> str | None:
    """Escolhe o cliente já indexado entre os hits {tipo: customer_id}.

    Usado pelos stores dentro da fronteira atômica do find-or-create.

    Raises:
        IdentityConflictError: hits apontam para clientes distintos
    """
    if not hits:
        return None
    if len(set(hits.values())) > 1:
        raise IdentityConflictError(dict(hits))
    return next(iter(hits.values()))


class CustomerStore(Protocol):
    """Porta de armazenamento de clientes."""

    def find_customer_by_identifier(
        self, company_id: str, kind: IdentifierKind, value: str
    ) -> Customer | None:
        """Busca cliente pela chave canônica (tipo, valor) dentro da empresa."""
        ...

    def create_customer(
        self,
        company_id: str,
        identifiers: CanonicalIdentifiers,
        profile: CustomerProfile,
    ) -> CreateCustomerResult:
        """Find-or-create atômico pelas chaves canônicas.

        Se outro chamador criou o cliente concorrentemente, retorna o
        existente com created=False.

        Raises:
            IdentityConflictError: chaves já indexadas para clientes distintos
        """
        ...

    def get_customer(self, customer_id: str) -> Customer | None:
        """Retorna cliente por id, se existir."""
        ...
