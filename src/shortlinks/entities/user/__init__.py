"""User entity module.

- User / NewUser: domain models
- UserRepository: data access on the record store
"""

from .entity import NewUser, User
from .repository import USER_TABLE, UserRepository

__all__ = ["NewUser", "User", "UserRepository", "USER_TABLE"]
