"""Quiz domain services: round queue, matching, scoring and timers.

This package contains pure domain logic that is imported by HTTP routes
and socket handlers, keeping transport concerns separated from the core
game mechanics. Nothing in here touches Flask.
"""

from .records import (
    CountryRecord,
    DatasetProvider,
    Language,
    Mode,
    MODE_COUNTS,
    ROUND_DURATION_SEC,
    TICK_INTERVAL_SEC,
    FEEDBACK_DURATION_SEC,
)
from .engine import QuizEngine
from .machine import InvalidTransition

__all__ = [
    'CountryRecord',
    'DatasetProvider',
    'Language',
    'Mode',
    'MODE_COUNTS',
    'ROUND_DURATION_SEC',
    'TICK_INTERVAL_SEC',
    'FEEDBACK_DURATION_SEC',
    'QuizEngine',
    'InvalidTransition',
]
