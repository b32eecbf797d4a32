"""Match outcomes and rating periods."""

from .period import RatingPeriod
from .types import MatchOutcome

__all__ = ["RatingPeriod", "MatchOutcome"]
