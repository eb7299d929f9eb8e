from typing import Any

from pydantic import ValidationError

from src.shortlinks.core.services.database.record_store import (
    RecordStore,
    RecordStoreError,
)
from src.shortlinks.entities.user.entity import NewUser, User

USER_TABLE = "user"


def _to_user(record: dict[str, Any]) -> User:
    try:
        return User.model_validate(record)
    except ValidationError as e:
        raise RecordStoreError(f"Malformed user record {record.get('id')!r}: {e}") from e


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get_by_subject(self, subject: str) -> User | None:
        """Look up the user for an identity provider subject.

        Raises:
            RecordStoreError: If the stored row cannot be read as a user
        """
        record = await self._store.select_one(USER_TABLE, "subject", subject)
        if record is None:
            return None
        return _to_user(record)

    async def create(self, user: NewUser) -> User | None:
        """Insert a user.

        Raises:
            DuplicateRecordError: If a user with the same subject already exists
            RecordStoreError: If the created row cannot be read as a user
        """
        record = await self._store.create(USER_TABLE, user.model_dump())
        if record is None:
            return None
        return _to_user(record)
