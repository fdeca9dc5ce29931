"""Credential handling for a sync client talking HTTP Basic auth to its server."""

__version__ = "0.1.0"
