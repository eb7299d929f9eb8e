from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from starlette.requests import Request

from src.shortlinks.runtime.config.config_data import ConfigData, OIDCConfig
from tests.utils import make_id_token, oct_jwk

_HS_KEY = b"shortlinks-test-signing-key-0123456789"
_ISSUER = "https://issuer.test/realms/shortlinks"
_CLIENT_ID = "shortlinks-web"
_KID = "test-key"


@pytest.fixture
def issuer() -> str:
    return _ISSUER


@pytest.fixture
def client_id() -> str:
    return _CLIENT_ID


@pytest.fixture
def kid_for_jwt() -> str:
    return _KID


@pytest.fixture
def secret_for_jwt() -> bytes:
    return _HS_KEY


@pytest.fixture
def jwks_uri() -> str:
    return f"{_ISSUER}/protocol/openid-connect/certs"


@pytest.fixture
def jwks_data(secret_for_jwt: bytes, kid_for_jwt: str) -> dict[str, Any]:
    """JWKS holding the symmetric test key."""
    return {"keys": [oct_jwk(secret_for_jwt, kid_for_jwt)]}


@pytest.fixture
def hs256_config() -> ConfigData:
    """OIDC settings that accept the symmetric test key."""
    return ConfigData(
        oidc=OIDCConfig(
            issuer=_ISSUER,
            client_id=_CLIENT_ID,
            allowed_algorithms=["HS256"],
            clock_skew=0,
        )
    )


@pytest.fixture
def id_token_payload(issuer: str, client_id: str) -> dict[str, Any]:
    """Claims of a first-time user."""
    return {
        "iss": issuer,
        "aud": client_id,
        "sub": "abc123",
        "email": "a@example.com",
        "name": "Ana",
    }


@pytest.fixture
def id_token_factory(
    secret_for_jwt: bytes, kid_for_jwt: str
) -> Callable[..., str]:
    def _make(payload: dict[str, Any], **kwargs: Any) -> str:
        kwargs.setdefault("kid", kid_for_jwt)
        return make_id_token(payload, secret_for_jwt, **kwargs)

    return _make


@pytest.fixture
def request_factory() -> Callable[..., Request]:
    def _make_request(
        headers: dict[str, str] | None = None, state: dict[str, Any] | None = None
    ) -> Request:
        scope = {
            "type": "http",
            "headers": [
                (name.lower().encode("ascii"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "state": dict(state or {}),
        }
        return Request(scope)

    return _make_request
