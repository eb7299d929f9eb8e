"""Record store interface shared by the SurrealDB and in-memory backends.

The store is an authenticated key/record database reached through an
RPC-style client. Records are plain dictionaries; every record carries its
identifier under ``id`` as a ``table:key`` string.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Wording SurrealDB uses for every rejected sign-in, whatever the scope.
AUTHENTICATION_FAILURE_TEXT = "There was a problem with authentication"
DUPLICATE_RECORD_TEXT = "already contains"


class RecordStoreError(Exception):
    """Any failure reported by the record store or its transport."""


class AuthenticationFailedError(RecordStoreError):
    """The store rejected the supplied credentials for the requested scope."""


class DuplicateRecordError(RecordStoreError):
    """A unique index rejected a write."""


def is_authentication_failure(message: str) -> bool:
    """Return True when an error message is the store's sign-in rejection.

    The store does not expose a structured error code for this case, so this
    predicate is the only place that depends on its wording.
    """
    return AUTHENTICATION_FAILURE_TEXT in message


def is_duplicate_record(message: str) -> bool:
    """Return True when an error message reports a unique index violation."""
    return DUPLICATE_RECORD_TEXT in message and "index" in message


class CredentialScope(str, Enum):
    DATABASE = "database"
    NAMESPACE = "namespace"
    ROOT = "root"


@dataclass(frozen=True)
class Credentials:
    """Credentials for a single sign-in attempt at a given scope."""

    scope: CredentialScope
    username: str
    password: str
    namespace: str | None = None
    database: str | None = None

    def as_signin_vars(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.scope in (CredentialScope.DATABASE, CredentialScope.NAMESPACE):
            params["namespace"] = self.namespace or ""
        if self.scope is CredentialScope.DATABASE:
            params["database"] = self.database or ""
        params["username"] = self.username
        params["password"] = self.password
        return params

    def __repr__(self) -> str:
        return (
            f"Credentials(scope={self.scope.value!r}, username={self.username!r}, "
            f"namespace={self.namespace!r}, database={self.database!r})"
        )


class RecordStore(ABC):
    """Abstract interface for record store backends."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying connection."""

    @abstractmethod
    async def sign_in(self, credentials: Credentials) -> None:
        """Authenticate the connection.

        Raises:
            AuthenticationFailedError: If the credentials are rejected at this scope
            RecordStoreError: On any other failure
        """

    @abstractmethod
    async def use(self, namespace: str, database: str) -> None:
        """Bind the connection to a namespace and database."""

    @abstractmethod
    async def select_one(
        self, table: str, field: str, value: Any
    ) -> dict[str, Any] | None:
        """Return the first record in ``table`` whose ``field`` equals ``value``."""

    @abstractmethod
    async def create(self, table: str, content: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a record and return it with its generated ``id``.

        Raises:
            DuplicateRecordError: If a unique index rejects the record
        """

    @abstractmethod
    async def run_script(self, script: str) -> None:
        """Execute an initialization script (schema and index definitions)."""

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
