"""Tests for ID token verification and JWKS caching."""

import time
from unittest.mock import patch

import httpx
import pytest

from src.shortlinks.core.errors import InvalidClaimsError
from src.shortlinks.core.services.jwt import (
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
)
from src.shortlinks.runtime.context import with_context
from tests.fixtures.dummies import DummyAsyncClient, FailingAsyncClient
from tests.utils import make_id_token


@pytest.fixture
def jwks_cache(jwks_uri, jwks_data) -> JWKSCacheInMemory:
    """Cache pre-filled with the test key set so no HTTP request is made."""
    cache = JWKSCacheInMemory()
    cache.set_jwks(jwks_uri, jwks_data)
    return cache


@pytest.fixture
def jwt_verify_service(jwks_cache) -> JwtVerificationService:
    return JwtVerificationService(JwksService(jwks_cache))


class TestJwksService:
    async def test_fetches_and_caches(self, jwks_uri, jwks_data):
        service = JwksService(JWKSCacheInMemory())

        with patch(
            "src.shortlinks.core.services.jwt.jwks.httpx.AsyncClient",
            lambda *a, **kw: DummyAsyncClient(jwks_uri, jwks_data),
        ):
            assert await service.fetch_jwks(jwks_uri) == jwks_data

        with patch(
            "src.shortlinks.core.services.jwt.jwks.httpx.AsyncClient",
            lambda *a, **kw: FailingAsyncClient(jwks_uri, jwks_data),
        ):
            assert await service.fetch_jwks(jwks_uri) == jwks_data

    async def test_fetch_failure(self, jwks_uri):
        class Unreachable(DummyAsyncClient):
            async def get(self, url: str):
                raise httpx.ConnectError("connection refused")

        with patch(
            "src.shortlinks.core.services.jwt.jwks.httpx.AsyncClient",
            lambda *a, **kw: Unreachable(jwks_uri, None),
        ):
            with pytest.raises(InvalidClaimsError, match="Failed to fetch JWKS"):
                await JwksService(JWKSCacheInMemory()).fetch_jwks(jwks_uri)


class TestJwtVerificationService:
    async def test_valid_token(
        self, jwt_verify_service, hs256_config, id_token_factory, id_token_payload
    ):
        token = id_token_factory(id_token_payload)
        with with_context(hs256_config):
            claims = await jwt_verify_service.verify_id_token(token)

        assert claims.subject == "abc123"
        assert claims.email == "a@example.com"
        assert claims.display_name() == "Ana"

    async def test_expired_token(
        self, jwt_verify_service, hs256_config, id_token_factory, id_token_payload
    ):
        now = int(time.time())
        token = id_token_factory({**id_token_payload, "iat": now - 7200, "exp": now - 3600})
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError):
                await jwt_verify_service.verify_id_token(token)

    async def test_wrong_audience(
        self, jwt_verify_service, hs256_config, id_token_factory, id_token_payload
    ):
        token = id_token_factory({**id_token_payload, "aud": "someone-else"})
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError):
                await jwt_verify_service.verify_id_token(token)

    async def test_wrong_issuer(
        self, jwt_verify_service, hs256_config, id_token_factory, id_token_payload
    ):
        token = id_token_factory({**id_token_payload, "iss": "https://evil.test"})
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError):
                await jwt_verify_service.verify_id_token(token)

    async def test_wrong_signature(
        self, jwt_verify_service, hs256_config, id_token_payload, kid_for_jwt
    ):
        token = make_id_token(id_token_payload, b"not-the-right-key-0123456789", kid_for_jwt)
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError):
                await jwt_verify_service.verify_id_token(token)

    async def test_unknown_kid(
        self, jwt_verify_service, hs256_config, id_token_factory, id_token_payload
    ):
        token = id_token_factory(id_token_payload, kid="rotated-away")
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError, match="No JWK"):
                await jwt_verify_service.verify_id_token(token)

    async def test_algorithm_not_allowed(
        self, jwt_verify_service, id_token_factory, id_token_payload
    ):
        # Default configuration only allows asymmetric algorithms
        token = id_token_factory(id_token_payload)
        with pytest.raises(InvalidClaimsError, match="Disallowed"):
            await jwt_verify_service.verify_id_token(token)

    async def test_malformed_token(self, jwt_verify_service, hs256_config):
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError):
                await jwt_verify_service.verify_id_token("not-a-jwt")

    @pytest.mark.parametrize("token", ["W10.e30.sig", "Im5vcGUi.e30.sig", "MQ.e30.sig"])
    async def test_header_not_an_object(self, jwt_verify_service, hs256_config, token):
        with with_context(hs256_config):
            with pytest.raises(InvalidClaimsError, match="Malformed JWT header"):
                await jwt_verify_service.verify_id_token(token)
