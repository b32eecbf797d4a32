"""Match outcome records."""

import math
import numbers
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ..base import RatingEntity
from ..errors import InvalidOutcomeError


def _check_score(score, label: str) -> float:
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise InvalidOutcomeError(f"{label} must be a real number, got {score!r}")
    score = float(score)
    if not math.isfinite(score):
        raise InvalidOutcomeError(f"{label} must be finite, got {score}")
    return score


@dataclass(frozen=True, eq=False)
class MatchOutcome:
    """
    The result of one match between exactly two distinct participants.

    Each participant is paired with the score it received, typically
    1.0/0.0 for a win/loss and 0.5/0.5 for a draw. Any two finite real
    scores are accepted. Outcomes are immutable once built.
    """

    first: RatingEntity
    second: RatingEntity
    first_score: float
    second_score: float

    def __post_init__(self):
        for entity in (self.first, self.second):
            if not isinstance(entity, RatingEntity):
                raise InvalidOutcomeError(f"Participants must be RatingEntity objects, got {entity!r}")
        if self.first == self.second:
            raise InvalidOutcomeError(f"An outcome needs two distinct participants, got {self.first!r} twice")

        object.__setattr__(self, "first_score", _check_score(self.first_score, "first_score"))
        object.__setattr__(self, "second_score", _check_score(self.second_score, "second_score"))

    @classmethod
    def from_scores(cls, scores: Mapping[RatingEntity, float]) -> "MatchOutcome":
        """Build an outcome from a {participant: score} mapping of exactly two entries."""
        items = list(scores.items())
        if len(items) != 2:
            raise InvalidOutcomeError(f"An outcome needs exactly two participants, got {len(items)}")
        (first, first_score), (second, second_score) = items
        return cls(first, second, first_score, second_score)

    @property
    def participants(self) -> Tuple[RatingEntity, RatingEntity]:
        return self.first, self.second

    @property
    def scores(self) -> Mapping[RatingEntity, float]:
        """Read-only {participant: score} view."""
        return MappingProxyType({self.first: self.first_score, self.second: self.second_score})

    @property
    def winner(self) -> Optional[RatingEntity]:
        """The participant with the higher score, or None on a draw."""
        if self.is_draw():
            return None
        return self.first if self.first_score > self.second_score else self.second

    def involves(self, entity: RatingEntity) -> bool:
        return entity == self.first or entity == self.second

    def score_for(self, entity: RatingEntity) -> float:
        """Score received by entity in this outcome."""
        if entity == self.first:
            return self.first_score
        if entity == self.second:
            return self.second_score
        raise KeyError(entity)

    def opponent_of(self, entity: RatingEntity) -> RatingEntity:
        """The other participant of this outcome."""
        if entity == self.first:
            return self.second
        if entity == self.second:
            return self.first
        raise KeyError(entity)

    def is_draw(self) -> bool:
        return self.first_score == self.second_score

    def __contains__(self, entity) -> bool:
        return self.involves(entity)

    def __repr__(self) -> str:
        return (
            f"MatchOutcome({self.first.id}: {self.first_score:g}, "
            f"{self.second.id}: {self.second_score:g})"
        )
