"""User domain entity."""

from pydantic import BaseModel, Field

from src.shortlinks.entities._base import Entity


class NewUser(BaseModel):
    """User content before the store has assigned an identifier."""

    subject: str = Field(description="Stable subject identifier from the identity provider")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")


class User(NewUser, Entity):
    """A person known to the system, created once per identity provider subject."""
