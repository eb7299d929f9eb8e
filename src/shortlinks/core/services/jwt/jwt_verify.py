"""ID token verification against the identity provider's key set."""

import json
import time
from base64 import urlsafe_b64decode

from authlib.jose import JoseError, JsonWebKey, jwt
from loguru import logger

from src.shortlinks.core.errors import InvalidClaimsError
from src.shortlinks.core.models.claims import IdentityClaims
from src.shortlinks.core.services.jwt.jwks import JwksService
from src.shortlinks.runtime.context import get_config


def _read_header(token: str) -> dict:
    """Decode the JOSE header without verifying anything."""
    try:
        header_segment = token.split(".", 1)[0]
        padded = header_segment + "=" * (-len(header_segment) % 4)
        header = json.loads(urlsafe_b64decode(padded))
    except (ValueError, IndexError) as exc:
        raise InvalidClaimsError("Malformed JWT header") from exc
    if not isinstance(header, dict):
        raise InvalidClaimsError("Malformed JWT header")
    return header


class JwtVerificationService:
    def __init__(self, jwks_service: JwksService):
        self._jwks_service = jwks_service

    async def verify_id_token(self, token: str) -> IdentityClaims:
        """Verify an ID token issued by the configured identity provider.

        Raises:
            InvalidClaimsError: If the token is malformed, untrusted or expired
        """
        cfg = get_config().oidc
        header = _read_header(token)

        alg = header.get("alg")
        if alg not in cfg.allowed_algorithms:
            raise InvalidClaimsError(f"Disallowed JWT algorithm: {alg}")

        jwks = await self._jwks_service.fetch_jwks(cfg.resolved_jwks_uri)
        kid = header.get("kid")
        jwk_set = (
            {"keys": [k for k in jwks.get("keys", []) if k.get("kid") == kid]}
            if kid
            else jwks
        )
        if not jwk_set.get("keys"):
            raise InvalidClaimsError(f"No JWK matches kid={kid}")

        claims_options = {
            "iss": {"essential": True, "values": [cfg.issuer.rstrip("/"), cfg.issuer]},
            "aud": {"essential": True, "values": cfg.accepted_audiences},
            "sub": {"essential": True},
            "exp": {"essential": True},
        }

        try:
            claims = jwt.decode(
                token, JsonWebKey.import_key_set(jwk_set), claims_options=claims_options
            )
            claims.validate(now=int(time.time()), leeway=cfg.clock_skew)
        except (JoseError, ValueError) as exc:
            raise InvalidClaimsError(f"JWT error: {exc}") from exc

        logger.debug("Verified ID token for subject {}", claims.get("sub"))
        return IdentityClaims.from_jwt_payload(dict(claims))
