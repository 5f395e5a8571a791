"""
vocage

A vocabulary trainer implementing Leitner-style spaced repetition.
"""

from . import errors
from . import config
from . import cards
from . import filters
from . import scheduler
from . import session
from . import persistence

__version__ = "0.2.0"
__all__ = ["errors", "config", "cards", "filters", "scheduler", "session", "persistence"]
