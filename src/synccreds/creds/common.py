"""Helpers shared by credential implementations."""

import logging

logger = logging.getLogger(__name__)


def keychain_key(url: str, user: str) -> str:
    """Build the secure storage key for an account.

    The key is ``<user>:<url>`` with the URL normalized to a single
    trailing slash, so ``https://h/dav`` and ``https://h/dav/`` map to the
    same entry.

    Args:
        url: Server URL of the account
        user: Username on that server

    Returns:
        The storage key, or an empty string if url or user is empty
    """
    if not url:
        logger.warning("Empty url in keychain key")
        return ""
    if not user:
        logger.warning("Empty user in keychain key")
        return ""

    return f"{user}:{url.rstrip('/')}/"
