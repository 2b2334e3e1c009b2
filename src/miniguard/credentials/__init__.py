"""
Credentials Module
==================

Telegram credential persistence.
"""

from miniguard.credentials.store import (
    CredentialStore,
    CredentialStoreError,
    format_properties,
    parse_properties,
)

__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "format_properties",
    "parse_properties",
]
