"""Configurações centralizadas do omnichannel.

Uso típico:
    from omnichannel.config import get_settings
"""

from omnichannel.config.settings import VALID_STORE_BACKENDS, Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "VALID_STORE_BACKENDS",
]
