import base64
import time
from typing import Any

from authlib.jose import jwt


def oct_jwk(key: bytes, kid: str) -> dict[str, str]:
    return {
        "kty": "oct",
        "k": base64.urlsafe_b64encode(key).rstrip(b"=").decode("ascii"),
        "alg": "HS256",
        "kid": kid,
    }


def make_id_token(
    payload: dict[str, Any],
    key: bytes,
    kid: str | None,
    alg: str = "HS256",
) -> str:
    """Sign an ID token; ``iat`` and ``exp`` are filled in unless given."""
    now = int(time.time())
    claims = {"iat": now, "exp": now + 3600, **payload}
    header = {"alg": alg}
    if kid is not None:
        header["kid"] = kid
    token = jwt.encode(header, claims, key)
    return token.decode("ascii") if isinstance(token, bytes) else token
