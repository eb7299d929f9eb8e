"""Session and claims based user identity resolution."""

from .resolver import IdentityResolver, new_user_from_claims
from .session_cache import USER_ID_KEY, SessionCache
from .write_back import WriteBackScheduler

__all__ = [
    "IdentityResolver",
    "SessionCache",
    "USER_ID_KEY",
    "WriteBackScheduler",
    "new_user_from_claims",
]
