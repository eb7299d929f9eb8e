"""Entities organized by business concept.

Each entity package holds its domain model (entity.py) and its data access
layer (repository.py).
"""

from .user import NewUser, User, UserRepository

__all__ = ["NewUser", "User", "UserRepository"]
