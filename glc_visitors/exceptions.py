# exceptions.py — error taxonomy for the visitors app
"""
All app errors derive from VisitorAppError so the Streamlit pages can catch
one type and flash the message.
"""
from __future__ import annotations

from typing import Optional


class VisitorAppError(Exception):
    """Base error. `message` is what the user sees."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(VisitorAppError):
    """Missing or invalid configuration (secrets / env / .env.local)."""

    def __init__(self, message: str, keys: Optional[list] = None):
        super().__init__(message)
        self.keys = list(keys or [])


class ValidationError(VisitorAppError):
    """A required form field is missing. Raised before any network call."""

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class RemoteStoreError(VisitorAppError):
    """The backend rejected a select/insert/update/delete. Message is verbatim."""


class UploadError(RemoteStoreError):
    """Object storage failure."""


class CredentialError(VisitorAppError):
    pass


class ExportRefused(VisitorAppError):
    pass


class InvalidStateError(VisitorAppError):
    """Operation not allowed in the current table mode."""
