"""Session and claims models."""

from .claims import IdentityClaims, LocalizedClaim
from .session import InvalidSessionIdentityError, SessionIdentity, SessionRecord

__all__ = [
    "IdentityClaims",
    "InvalidSessionIdentityError",
    "LocalizedClaim",
    "SessionIdentity",
    "SessionRecord",
]
