"""Errors raised while establishing who a request belongs to.

Every class here ends up as a 401 response; the mapping happens in
``api/http/deps.py`` and nowhere else.
"""


class IdentityResolutionError(Exception):
    """No user identity could be established for the request."""


class InvalidClaimsError(IdentityResolutionError):
    """The identity provider's claims are missing or failed verification."""


class MissingClaimError(IdentityResolutionError):
    """A claim needed to create the user is absent."""

    def __init__(self, claim: str, subject: str) -> None:
        super().__init__(f"Claim {claim!r} is required to create user for subject {subject!r}")
        self.claim = claim
        self.subject = subject
