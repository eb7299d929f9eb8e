"""Identity provider claims."""

from typing import Any

from pydantic import BaseModel, Field


class LocalizedClaim(BaseModel):
    """An OIDC claim that may carry per-language values (``name#de``)."""

    values: dict[str | None, str] = Field(
        default_factory=dict, description="Values keyed by language tag; None is untagged"
    )

    def get(self, locale: str | None = None) -> str | None:
        """Value for ``locale``; with no locale, the untagged value or the first available."""
        if locale in self.values:
            return self.values[locale]
        if locale is None:
            return next(iter(self.values.values()), None)
        return None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], claim: str) -> "LocalizedClaim | None":
        values: dict[str | None, str] = {}
        for key, value in payload.items():
            if not isinstance(value, str) or not value:
                continue
            if key == claim:
                values[None] = value
            elif key.startswith(f"{claim}#"):
                values[key.split("#", 1)[1]] = value
        if not values:
            return None
        # Untagged value first so get() falls back to it
        if None in values:
            values = {None: values.pop(None), **values}
        return cls(values=values)


class IdentityClaims(BaseModel):
    """Verified claims about the caller, as asserted by the identity provider."""

    subject: str = Field(description="Subject (stable external user id)")
    issuer: str | None = Field(default=None, description="Issuer")
    email: str | None = Field(default=None, description="Email address")
    name: LocalizedClaim | None = Field(default=None, description="Display name")

    @classmethod
    def from_jwt_payload(cls, payload: dict[str, Any]) -> "IdentityClaims":
        return cls(
            subject=payload["sub"],
            issuer=payload.get("iss"),
            email=payload.get("email") or None,
            name=LocalizedClaim.from_payload(payload, "name"),
        )

    def display_name(self) -> str | None:
        if self.name is None:
            return None
        return self.name.get(None)
