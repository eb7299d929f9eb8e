from loguru import logger

from src.shortlinks.core.models.session import (
    InvalidSessionIdentityError,
    SessionIdentity,
)
from src.shortlinks.core.services.session.session_manager import Session
from src.shortlinks.core.storage.session_storage import SessionStorageError

USER_ID_KEY = "user_id"


class SessionCache:
    """Resolved identity cached in the current request's session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    async def read(self) -> SessionIdentity | None:
        """Return the cached identity, or None when absent or unusable.

        An unreachable session store counts as a miss so the request can still
        be served from claims.
        """
        try:
            value = await self._session.get(USER_ID_KEY)
        except SessionStorageError as e:
            logger.warning("Session store unavailable, resolving identity from claims: {}", e)
            return None

        if value is None:
            return None

        try:
            return SessionIdentity.from_session_value(value)
        except InvalidSessionIdentityError as e:
            logger.warning("Ignoring cached identity: {}", e)
            return None

    async def write(self, identity: SessionIdentity) -> None:
        """Store the identity in the session.

        Raises:
            SessionStorageError: If the session store rejects the write
        """
        await self._session.insert(USER_ID_KEY, identity.to_session_value())
