"""Record store access and startup connection."""

from .credential_cascade import StartupError, connect_record_store
from .memory_store import InMemoryRecordStore
from .record_store import (
    AuthenticationFailedError,
    CredentialScope,
    Credentials,
    DuplicateRecordError,
    RecordStore,
    RecordStoreError,
)

__all__ = [
    "AuthenticationFailedError",
    "CredentialScope",
    "Credentials",
    "DuplicateRecordError",
    "InMemoryRecordStore",
    "RecordStore",
    "RecordStoreError",
    "StartupError",
    "connect_record_store",
]
