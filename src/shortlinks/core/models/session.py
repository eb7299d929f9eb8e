"""Session models."""

import re
import time

from pydantic import BaseModel, Field

_RECORD_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*:\S+$")


class SessionRecord(BaseModel):
    """Persisted state of a browser session."""

    id: str = Field(description="Session identifier (cookie value)")
    data: dict[str, str] = Field(default_factory=dict, description="Session values")
    created_at: int = Field(description="Creation timestamp")
    last_accessed_at: int = Field(description="Last access timestamp")
    expires_at: int = Field(description="Expiration timestamp")

    @classmethod
    def create(cls, session_id: str, max_age_seconds: int) -> "SessionRecord":
        """Create a new, empty session record with timestamps."""
        now = int(time.time())
        return cls(
            id=session_id,
            created_at=now,
            last_accessed_at=now,
            expires_at=now + max_age_seconds,
        )

    def is_expired(self) -> bool:
        return time.time() > self.expires_at

    def touch(self, max_age_seconds: int) -> None:
        """Slide the inactivity window forward."""
        now = int(time.time())
        self.last_accessed_at = now
        self.expires_at = now + max_age_seconds


class InvalidSessionIdentityError(ValueError):
    """A stored session value is not a user identifier."""


class SessionIdentity(BaseModel):
    """Identifier of the user a session belongs to."""

    user_id: str = Field(description="Record identifier of the user")

    def to_session_value(self) -> str:
        return self.user_id

    @classmethod
    def from_session_value(cls, value: str) -> "SessionIdentity":
        """Parse a stored value.

        Raises:
            InvalidSessionIdentityError: If the value is not a ``table:key`` identifier
        """
        if not isinstance(value, str) or not _RECORD_ID_RE.match(value):
            raise InvalidSessionIdentityError(f"Malformed user id in session: {value!r}")
        return cls(user_id=value)

    def __str__(self) -> str:
        return self.user_id
