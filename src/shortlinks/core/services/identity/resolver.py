"""Resolve the user identity behind a request.

Order of precedence:

1. the identity cached in the session, without touching the record store;
2. the user whose subject matches the identity provider's claims;
3. a new user created from those claims.

An identity found through 2 or 3 is written back to the session by a detached
task so the next request can take the fast path.
"""

from loguru import logger

from src.shortlinks.core.errors import IdentityResolutionError, MissingClaimError
from src.shortlinks.core.models.claims import IdentityClaims
from src.shortlinks.core.models.session import SessionIdentity
from src.shortlinks.core.services.database.record_store import (
    DuplicateRecordError,
    RecordStore,
    RecordStoreError,
)
from src.shortlinks.core.services.identity.session_cache import SessionCache
from src.shortlinks.core.services.identity.write_back import WriteBackScheduler
from src.shortlinks.entities.user import NewUser, User, UserRepository

def new_user_from_claims(claims: IdentityClaims) -> NewUser:
    """Build user content from claims.

    Raises:
        MissingClaimError: If the email or display name claim is absent
    """
    email = claims.email
    if not email:
        raise MissingClaimError("email", claims.subject)
    name = claims.display_name()
    if not name:
        raise MissingClaimError("name", claims.subject)
    return NewUser(subject=claims.subject, name=name, email=email)


class IdentityResolver:
    def __init__(
        self, store: RecordStore, write_back: WriteBackScheduler | None = None
    ) -> None:
        self._users = UserRepository(store)
        self._write_back = write_back or WriteBackScheduler()

    @property
    def write_back(self) -> WriteBackScheduler:
        return self._write_back

    async def resolve(
        self, cache: SessionCache, claims: IdentityClaims
    ) -> SessionIdentity:
        """Return the identity for the current request.

        ``claims`` have already been verified; they are only used to look up
        the user when the session holds no identity.

        Raises:
            IdentityResolutionError: If no identity can be established
        """
        identity = await cache.read()
        if identity is not None:
            return identity

        logger.warning("User id not found in session")
        identity = await self.from_claims(claims)
        self._write_back.schedule(cache, identity)
        return identity

    async def from_claims(self, claims: IdentityClaims) -> SessionIdentity:
        """Find the user for the claims' subject, creating it on first login.

        Raises:
            MissingClaimError: If a new user must be created and a required claim is absent
            IdentityResolutionError: On record store failure
        """
        try:
            user = await self._find_or_create(claims)
        except RecordStoreError as e:
            raise IdentityResolutionError(
                f"Record store error while resolving subject {claims.subject!r}: {e}"
            ) from e
        return SessionIdentity(user_id=user.id)

    async def _find_or_create(self, claims: IdentityClaims) -> User:
        user = await self._users.get_by_subject(claims.subject)
        if user is not None:
            return user

        new_user = new_user_from_claims(claims)
        try:
            created = await self._users.create(new_user)
        except DuplicateRecordError:
            # A concurrent first login for the same subject won the insert
            logger.info("User for subject {} created concurrently, re-reading", claims.subject)
            user = await self._users.get_by_subject(claims.subject)
            if user is None:
                raise IdentityResolutionError(
                    f"User for subject {claims.subject!r} reported as duplicate but not found"
                ) from None
            return user

        if created is None:
            raise IdentityResolutionError(
                f"Record store returned no user after creating subject {claims.subject!r}"
            )
        logger.info("Created user {} for subject {}", created.id, claims.subject)
        return created
