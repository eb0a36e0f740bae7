"""catalog_scout.crawler: frontier, session management and page rendering."""

from .frontier import Frontier
from .models import FrontierEntry, ListingPage, PageData, PageKind
from .session import LoginStatus, SessionHandle, SessionManager

__all__ = [
    "Frontier",
    "FrontierEntry",
    "ListingPage",
    "PageData",
    "PageKind",
    "LoginStatus",
    "SessionHandle",
    "SessionManager",
]
