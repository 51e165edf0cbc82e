"""
Chili Cook-Off - scoring and voting service for a chili cook-off.

This package provides:
- Chili registry keyed by entry number
- Judge scoring across five categories with per-chili aggregates
- Attendee ranked voting (5/3/1 points)
- A bonus round where each judge hands out up to 10 extra points
- Competition status (setup, voting, closed) for admins
"""

from .config import CookoffConfig
from .database import DatabaseManager
from .web_handlers import WebHandlers
from .cookoff import CookoffSystem

__version__ = "1.0.0"
__author__ = "Chili Cook-Off Contributors"

__all__ = [
    "CookoffConfig",
    "DatabaseManager",
    "WebHandlers",
    "CookoffSystem",
]
