"""Shortlinks API service.

Request authentication for the Shortlinks HTTP API: record store connection,
browser sessions, and resolution of the caller's user identity.
"""

__version__ = "0.1.0"
