"""Application models (published lookup state)."""

from .lookup_state import LookupPhase, LookupState
from .recent_search import RecentSearchEntry

__all__ = [
    "LookupPhase",
    "LookupState",
    "RecentSearchEntry",
]
