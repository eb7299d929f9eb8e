"""Shared pytest fixtures for record store, session and identity tests."""

from .app import *  # noqa: F401,F403
from .core import *  # noqa: F401,F403
from .stores import *  # noqa: F401,F403
