"""Participant rating state with a two-phase stage/commit update."""

import itertools
from dataclasses import dataclass
from typing import Optional, Tuple

# Process-wide monotonic source of entity identities
_next_id = itertools.count(1)


@dataclass(frozen=True)
class RatingUpdate:
    """Next-state values computed for one participant in one rating period."""

    rating: float
    deviation: float
    volatility: float


class RatingEntity:
    """
    One participant's committed Glicko-2 state plus a staging area.

    Identity comes from a monotonic id assigned at construction, so an
    entity keeps its place in sets and dicts while its numbers change.

    Committed values (rating, deviation, volatility) are only ever replaced
    by commit(), which copies the values previously written by stage().
    The working_* attributes are None whenever nothing is staged.

    Parameters:
        rating: Rating r (default: 1500)
        deviation: Rating deviation RD (default: 350)
        volatility: Volatility sigma (default: 0.06)
    """

    def __init__(
        self,
        rating: float = 1500.0,
        deviation: float = 350.0,
        volatility: float = 0.06,
    ):
        self.id: int = next(_next_id)
        self.rating = float(rating)
        self.deviation = float(deviation)
        self.volatility = float(volatility)

        self.working_rating: Optional[float] = None
        self.working_deviation: Optional[float] = None
        self.working_volatility: Optional[float] = None

    @property
    def state(self) -> Tuple[float, float, float]:
        """Committed (rating, deviation, volatility)."""
        return self.rating, self.deviation, self.volatility

    @property
    def is_staged(self) -> bool:
        return self.working_rating is not None

    def stage(self, rating: float, deviation: float, volatility: float) -> None:
        """Write next-state values without touching the committed state."""
        self.working_rating = rating
        self.working_deviation = deviation
        self.working_volatility = volatility

    def commit(self) -> None:
        """Move the staged values into the committed state and clear the staging area."""
        if not self.is_staged:
            raise RuntimeError(f"Nothing staged for entity {self.id}. Call stage() first.")

        self.rating = self.working_rating
        self.deviation = self.working_deviation
        self.volatility = self.working_volatility

        self.working_rating = None
        self.working_deviation = None
        self.working_volatility = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, RatingEntity):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"RatingEntity(id={self.id}, rating={self.rating:.2f}, "
            f"rd={self.deviation:.2f}, volatility={self.volatility:.6f})"
        )
