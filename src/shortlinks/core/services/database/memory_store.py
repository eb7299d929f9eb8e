"""In-memory record store for development and tests."""

from __future__ import annotations

import asyncio
import copy
import re
import secrets
from typing import Any

from loguru import logger

from src.shortlinks.core.services.database.record_store import (
    AUTHENTICATION_FAILURE_TEXT,
    AuthenticationFailedError,
    Credentials,
    DuplicateRecordError,
    RecordStore,
    RecordStoreError,
)

_UNIQUE_INDEX_RE = re.compile(
    r"DEFINE\s+INDEX\s+(?:IF\s+NOT\s+EXISTS\s+|OVERWRITE\s+)?(\w+)\s+ON\s+(?:TABLE\s+)?(\w+)\s+"
    r"(?:FIELDS|COLUMNS)\s+(\w+)\s+UNIQUE",
    re.IGNORECASE,
)


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed record store with unique index support.

    Unique indexes are taken from ``DEFINE INDEX ... UNIQUE`` statements in
    the initialization script, so the same script drives both backends.
    Every operation yields to the event loop before touching data, which
    lets tests interleave concurrent requests the way a networked store would.
    """

    def __init__(self, accounts: list[Credentials] | None = None):
        self._accounts = accounts
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._unique: dict[str, dict[str, str]] = {}
        self._signed_in: Credentials | None = None
        self._namespace: str | None = None
        self._database: str | None = None

    async def connect(self) -> None:
        await asyncio.sleep(0)

    async def sign_in(self, credentials: Credentials) -> None:
        await asyncio.sleep(0)
        if self._accounts is not None and credentials not in self._accounts:
            raise AuthenticationFailedError(
                f"There was a problem with the database: {AUTHENTICATION_FAILURE_TEXT}"
            )
        self._signed_in = credentials

    async def use(self, namespace: str, database: str) -> None:
        await asyncio.sleep(0)
        if self._signed_in is None:
            raise RecordStoreError("Not signed in")
        self._namespace = namespace
        self._database = database

    async def select_one(
        self, table: str, field: str, value: Any
    ) -> dict[str, Any] | None:
        self._require_bound()
        matches = [
            record
            for record in self._tables.get(table, {}).values()
            if record.get(field) == value
        ]
        await asyncio.sleep(0)
        return copy.deepcopy(matches[0]) if matches else None

    async def create(self, table: str, content: dict[str, Any]) -> dict[str, Any] | None:
        self._require_bound()
        await asyncio.sleep(0)

        rows = self._tables.setdefault(table, {})
        for index_name, field in self._unique.get(table, {}).items():
            value = content.get(field)
            for existing in rows.values():
                if existing.get(field) == value:
                    raise DuplicateRecordError(
                        f"Database index `{index_name}` already contains {value!r}, "
                        f"with record `{existing['id']}`"
                    )

        record_id = f"{table}:{secrets.token_hex(10)}"
        record = {**copy.deepcopy(content), "id": record_id}
        rows[record_id] = record
        return copy.deepcopy(record)

    async def run_script(self, script: str) -> None:
        self._require_bound()
        await asyncio.sleep(0)
        for index_name, table, field in _UNIQUE_INDEX_RE.findall(script):
            self._unique.setdefault(table, {})[index_name] = field
            logger.debug("Defined unique index {} on {}.{}", index_name, table, field)

    async def close(self) -> None:
        self._signed_in = None

    def records(self, table: str) -> list[dict[str, Any]]:
        """Snapshot of every record in a table."""
        return [copy.deepcopy(r) for r in self._tables.get(table, {}).values()]

    @property
    def signed_in_as(self) -> Credentials | None:
        return self._signed_in

    def _require_bound(self) -> None:
        if self._signed_in is None or self._namespace is None:
            raise RecordStoreError("Connection is not signed in and bound to a database")
