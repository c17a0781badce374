"""
Exceptions raised by the store adapters and the catalog service.
"""

from __future__ import annotations


class PapayaFreshError(Exception):
    """Base class for errors the API maps to JSON error responses."""


class BackendInitError(PapayaFreshError):
    """The document store or identity provider could not be initialised."""


class StoreError(PapayaFreshError):
    """A read or delete against the document store failed."""


class IdentityProviderError(PapayaFreshError):
    """The identity provider rejected or failed an account operation."""


class UserNotFoundError(PapayaFreshError):
    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id
