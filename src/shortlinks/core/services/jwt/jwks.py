from abc import ABC, abstractmethod
from typing import Any

import httpx
from cachetools import TTLCache

from src.shortlinks.core.errors import InvalidClaimsError


class JWKSCache(ABC):
    @abstractmethod
    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """Return the cached JWKS for ``jwks_uri``, or an empty dict."""
        raise NotImplementedError

    @abstractmethod
    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_jwks_cache(self) -> None:
        raise NotImplementedError


class JWKSCacheInMemory(JWKSCache):
    def __init__(self, maxsize: int = 10, ttl: int = 3600) -> None:
        self._cache: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=maxsize, ttl=ttl)

    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        return self._cache.get(jwks_uri, {})

    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        self._cache[jwks_uri] = jwks

    def clear_jwks_cache(self) -> None:
        self._cache.clear()


class JwksService:
    def __init__(self, cache: JWKSCache) -> None:
        self._cache = cache

    async def fetch_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """Return the identity provider's key set, fetching it on cache miss.

        Raises:
            InvalidClaimsError: If the key set cannot be fetched
        """
        jwks = self._cache.get_jwks(jwks_uri)
        if jwks:
            return jwks

        try:
            async with httpx.AsyncClient(timeout=5) as client:
                resp = await client.get(jwks_uri)
                resp.raise_for_status()
                jwks = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise InvalidClaimsError(f"Failed to fetch JWKS from {jwks_uri}: {exc}") from exc

        self._cache.set_jwks(jwks_uri, jwks)
        return jwks
