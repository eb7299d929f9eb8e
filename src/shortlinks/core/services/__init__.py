"""Core services: record store access, sessions, identity resolution and token verification."""
