"""
CyberPath - learner-progress tracker for an offensive-security curriculum.

Usage:
    from cyberpath import Tracker, get_settings

    tracker = Tracker.from_settings(get_settings())
    tracker.get_recommendations(learner_id)
    tracker.check_achievements(learner_id, "complete_unit", {"unit_id": "recon"})
"""

from .config import Settings, get_settings, configure_logging
from .errors import CyberPathError, NotFoundError, StoreUnavailableError, CatalogError
from .tracker import Tracker, UnitView

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "CyberPathError",
    "NotFoundError",
    "StoreUnavailableError",
    "CatalogError",
    "Tracker",
    "UnitView",
]
