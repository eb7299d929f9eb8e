"""SurrealDB-backed record store."""

from __future__ import annotations

from typing import Any

from loguru import logger
from surrealdb import AsyncSurreal, RecordID

from src.shortlinks.core.services.database.record_store import (
    AuthenticationFailedError,
    Credentials,
    DuplicateRecordError,
    RecordStore,
    RecordStoreError,
    is_authentication_failure,
    is_duplicate_record,
)


def _normalize(value: Any) -> Any:
    """Convert SDK record identifiers into ``table:key`` strings."""
    if isinstance(value, RecordID):
        return f"{value.table_name}:{value.id}"
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value


def _first_record(result: Any) -> dict[str, Any] | None:
    if isinstance(result, list):
        result = result[0] if result else None
    if result is None:
        return None
    return _normalize(result)


class SurrealRecordStore(RecordStore):
    """Record store speaking to SurrealDB through the official async SDK."""

    def __init__(self, endpoint: str, client: Any | None = None):
        self._endpoint = endpoint
        self._client = client if client is not None else AsyncSurreal(endpoint)

    async def connect(self) -> None:
        # HTTP connections are per-request; only websockets hold a session
        if not self._endpoint.startswith(("ws://", "wss://")):
            return
        try:
            await self._client.connect()
        except Exception as e:
            raise RecordStoreError(f"Failed to connect to {self._endpoint}: {e}") from e

    async def sign_in(self, credentials: Credentials) -> None:
        try:
            await self._client.signin(credentials.as_signin_vars())
        except Exception as e:
            if is_authentication_failure(str(e)):
                raise AuthenticationFailedError(str(e)) from e
            raise RecordStoreError(
                f"Sign-in at {credentials.scope.value} scope failed: {e}"
            ) from e

    async def use(self, namespace: str, database: str) -> None:
        try:
            await self._client.use(namespace, database)
        except Exception as e:
            raise RecordStoreError(
                f"Failed to use namespace {namespace!r} database {database!r}: {e}"
            ) from e

    async def select_one(
        self, table: str, field: str, value: Any
    ) -> dict[str, Any] | None:
        # Table and field names are never user input; the value is bound
        query = f"SELECT * FROM type::table($table) WHERE {field} = $value LIMIT 1"
        try:
            result = await self._client.query(query, {"table": table, "value": value})
        except Exception as e:
            raise RecordStoreError(f"Lookup on {table}.{field} failed: {e}") from e
        return _first_record(result)

    async def create(self, table: str, content: dict[str, Any]) -> dict[str, Any] | None:
        try:
            result = await self._client.create(table, content)
        except Exception as e:
            if is_duplicate_record(str(e)):
                raise DuplicateRecordError(str(e)) from e
            raise RecordStoreError(f"Create in {table} failed: {e}") from e
        return _first_record(result)

    async def run_script(self, script: str) -> None:
        try:
            response = await self._client.query_raw(script)
        except Exception as e:
            raise RecordStoreError(f"Initialization script failed: {e}") from e

        for index, statement in enumerate(response.get("result") or []):
            if statement.get("status") == "ERR":
                raise RecordStoreError(
                    f"Initialization script statement {index} failed: {statement.get('result')}"
                )
        logger.debug("Initialization script applied")

    async def close(self) -> None:
        try:
            await self._client.close()
        except Exception as e:
            logger.warning("Error closing record store connection: {}", e)
