"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from loguru import logger

from src.shortlinks.api.http.app_data import ApplicationDependencies
from src.shortlinks.core.errors import IdentityResolutionError, InvalidClaimsError
from src.shortlinks.core.models.claims import IdentityClaims
from src.shortlinks.core.models.session import SessionIdentity
from src.shortlinks.core.services.identity.resolver import IdentityResolver
from src.shortlinks.core.services.identity.session_cache import SessionCache
from src.shortlinks.core.services.jwt import JwtVerificationService
from src.shortlinks.core.services.session.session_manager import Session


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    return get_app_dependencies(request).jwt_verify_service


def get_identity_resolver(request: Request) -> IdentityResolver:
    """Get the identity resolver instance."""
    return get_app_dependencies(request).identity_resolver


def get_session(request: Request) -> Session:
    """Session attached by SessionMiddleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        logger.error("No session on request; is SessionMiddleware installed?")
        raise HTTPException(status_code=401, detail="Failed to extract session from request")
    return session


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise InvalidClaimsError("Missing Bearer token")
    return auth_header.split(" ", 1)[1]


async def get_identity_claims(
    request: Request,
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
) -> IdentityClaims:
    """Verified identity provider claims for the caller."""
    try:
        return await jwt_verify.verify_id_token(_bearer_token(request))
    except InvalidClaimsError as e:
        logger.error("Failed to extract token claims from request: {}", e)
        raise HTTPException(status_code=401, detail="Failed to extract token claims") from e


async def get_session_identity(
    request: Request,
    session: Session = Depends(get_session),
    claims: IdentityClaims = Depends(get_identity_claims),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> SessionIdentity:
    """Identity of the user behind the request.

    The bearer token is verified on every request; a session hit only spares
    the record store lookup.
    """
    try:
        identity = await resolver.resolve(SessionCache(session), claims)
    except IdentityResolutionError as e:
        logger.opt(exception=e).error("Failed to get user id from session or claims")
        raise HTTPException(status_code=401, detail="Failed to get user id") from e

    request.state.user_id = identity.user_id
    return identity
