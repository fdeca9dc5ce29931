"""API module for synccreds."""

from synccreds.api.client import SyncServerClient

__all__ = ["SyncServerClient"]
