"""catalog_scout.errors: exception hierarchy for the crawl pipeline."""

from __future__ import annotations


class CatalogScoutError(Exception):
    """Base class for every error raised by CatalogScout."""


class AuthFailure(CatalogScoutError):
    """Neither login strategy produced an authenticated session and auth is required."""


class LoginPageError(CatalogScoutError):
    """The login page itself could not be loaded; the crawl cannot start."""


class NavigationFailure(CatalogScoutError):
    """A queued URL could not be loaded or rendered."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class PersistenceFailure(CatalogScoutError):
    """The remote store rejected a record or could not be reached."""

    def __init__(self, sku: str, reason: str) -> None:
        super().__init__(f"{sku}: {reason}")
        self.sku = sku
        self.reason = reason


__all__ = [
    "CatalogScoutError",
    "AuthFailure",
    "LoginPageError",
    "NavigationFailure",
    "PersistenceFailure",
]
