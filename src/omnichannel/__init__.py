"""Core omnichannel: identidade de cliente e controle de modo de conversa."""

__version__ = "0.1.0"
