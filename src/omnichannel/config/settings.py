"""Configurações da aplicação via variáveis de ambiente.

Nenhum segredo é hardcoded: credenciais do Firestore vêm do ambiente
(Application Default Credentials).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_STORE_BACKENDS = frozenset({"memory", "firestore"})


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "omnichannel"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Armazenamento de clientes e conversas
    store_backend: str = "memory"  # memory | firestore
    firestore_project_id: str | None = None
    firestore_database_id: str = "(default)"
    customers_collection: str = "customers"
    customer_identifiers_collection: str = "customer_identifiers"
    conversations_collection: str = "conversations"

    # Mensagens
    max_message_length_chars: int = 4000

    # Observabilidade
    correlation_id_header: str = "X-Correlation-ID"

    def validate_store_backend(self) -> list[str]:
        """Valida backend de armazenamento por ambiente.

        Em staging/prod, memory é proibido (instâncias stateless).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.store_backend.lower()

        if backend not in VALID_STORE_BACKENDS:
            errors.append(
                f"STORE_BACKEND '{backend}' inválido. "
                f"Valores válidos: {sorted(VALID_STORE_BACKENDS)}"
            )

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append(
                "STORE_BACKEND=memory é proibido em staging/production. "
                "Configure 'firestore' para find-or-create e takeover atômicos entre instâncias."
            )

        if backend == "firestore" and not self.firestore_project_id:
            errors.append("STORE_BACKEND=firestore requer FIRESTORE_PROJECT_ID configurado")

        return errors

    def validate_messages(self) -> list[str]:
        """Valida limites de mensagens."""
        errors: list[str] = []
        if self.max_message_length_chars < 100:
            errors.append("MAX_MESSAGE_LENGTH_CHARS deve ser >= 100")
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
