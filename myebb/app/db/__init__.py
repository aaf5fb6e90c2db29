"""Local persistence for the Myebb client."""

from .models import Base, CredentialEntry, SettingEntry

__all__ = [
    "Base",
    "CredentialEntry",
    "SettingEntry",
]
