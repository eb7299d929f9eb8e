"""Test configuration and fixtures for the Shortlinks API."""

from tests.fixtures import *  # noqa: F401,F403
