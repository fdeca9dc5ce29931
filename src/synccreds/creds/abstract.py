"""Credentials interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx

from synccreds.events import Signal

if TYPE_CHECKING:
    from synccreds.account import Account
    from synccreds.creds.transport import Reply


class AbstractCredentials(ABC):
    """Credentials of one account.

    ``fetched`` fires once per effective ``fetch()`` call, whether or not a
    usable secret was obtained. Observers must check ``ready()``.
    """

    def __init__(self) -> None:
        self.fetched = Signal("fetched")

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Short name used to namespace credential settings."""

    @abstractmethod
    def user(self) -> str: ...

    @abstractmethod
    def ready(self) -> bool: ...

    @abstractmethod
    def changed(self, other: AbstractCredentials | None) -> bool:
        """Return True if ``other`` identifies a different login."""

    @abstractmethod
    def fetch(self, account: Account | None) -> None: ...

    @abstractmethod
    def still_valid(self, reply: Reply) -> bool: ...

    @abstractmethod
    def persist(self, account: Account) -> None: ...

    @abstractmethod
    def invalidate_token(self, account: Account) -> None: ...

    @abstractmethod
    def create_client(self, account: Account, timeout: float | None = None) -> httpx.Client: ...
