"""Rating period: the outcomes and participants of one batched update.

Uses Polars for tabular import and export of outcomes.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

import polars as pl

from ..base import RatingEntity
from ..errors import InvalidOutcomeError
from .types import MatchOutcome

logger = logging.getLogger(__name__)


class RatingPeriod:
    """
    Container for the match outcomes collected during one rating period.

    Keeps:
    - An ordered sequence of outcomes (insertion order is preserved)
    - An insertion-ordered, duplicate-free set of participants

    The participant set always contains every participant of every
    recorded outcome. Participants may also be added on their own so that
    an idle participant still receives a deviation-only update.

    Not thread-safe: callers sharing a period across threads must guard
    recording and the whole update pass with one lock.
    """

    def __init__(
        self,
        outcomes: Optional[Iterable[MatchOutcome]] = None,
        participants: Optional[Iterable[RatingEntity]] = None,
    ):
        """
        Initialize rating period.

        Args:
            outcomes: Outcomes to record, in order
            participants: Extra participants to carry without outcomes
        """
        self._outcomes: List[MatchOutcome] = []
        # dict as an insertion-ordered set
        self._participants: Dict[RatingEntity, None] = {}

        if outcomes is not None:
            self.add_outcomes(outcomes)
        if participants is not None:
            self.add_participants(participants)

    @classmethod
    def from_dataframe(cls, df, entities: Mapping[Hashable, RatingEntity]) -> "RatingPeriod":
        """
        Create a period from a DataFrame (pandas or polars) of games.

        Args:
            df: DataFrame with columns Player1, Player2, Score where Score is
                player 1's score and player 2 receives 1 - Score
            entities: Mapping from the keys used in Player1/Player2 to entities

        Returns:
            New RatingPeriod with one outcome per row, in row order
        """
        if not isinstance(df, pl.DataFrame):
            # Assume pandas DataFrame - convert to polars
            df = pl.from_pandas(df)

        required = {"Player1", "Player2", "Score"}
        missing = required - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        period = cls()
        for row, (key1, key2, score) in enumerate(df.select(["Player1", "Player2", "Score"]).iter_rows()):
            try:
                first = entities[key1]
                second = entities[key2]
            except KeyError as exc:
                raise InvalidOutcomeError(f"Row {row}: unknown participant {exc.args[0]!r}") from exc
            if score is None:
                raise InvalidOutcomeError(f"Row {row}: missing score")
            period.add_outcome(MatchOutcome(first, second, score, 1.0 - score))

        return period

    @property
    def outcomes(self) -> Tuple[MatchOutcome, ...]:
        """Recorded outcomes in insertion order."""
        return tuple(self._outcomes)

    @property
    def participants(self) -> Tuple[RatingEntity, ...]:
        """Participants in first-seen order."""
        return tuple(self._participants)

    @property
    def num_outcomes(self) -> int:
        return len(self._outcomes)

    @property
    def num_participants(self) -> int:
        return len(self._participants)

    def add_outcome(self, outcome: MatchOutcome) -> None:
        """Record an outcome and add both of its participants."""
        self._outcomes.append(outcome)
        for entity in outcome.participants:
            self._participants.setdefault(entity, None)

    def add_outcomes(self, outcomes: Iterable[MatchOutcome]) -> None:
        """Record several outcomes, preserving their order."""
        for outcome in outcomes:
            self.add_outcome(outcome)

    def add_participant(self, entity: RatingEntity) -> None:
        """Add a participant without an outcome (no-op if already present)."""
        self._participants.setdefault(entity, None)

    def add_participants(self, entities: Iterable[RatingEntity]) -> None:
        for entity in entities:
            self.add_participant(entity)

    def outcomes_for(self, entity: RatingEntity) -> List[MatchOutcome]:
        """Every recorded outcome involving entity, in insertion order."""
        return [outcome for outcome in self._outcomes if outcome.involves(entity)]

    def clear_outcomes(self) -> None:
        """Drop all outcomes but keep the participant roster for the next period."""
        logger.debug("Clearing %d outcomes (keeping %d participants)", len(self._outcomes), len(self._participants))
        self._outcomes.clear()

    def clear(self) -> None:
        """Drop all outcomes and all participants."""
        logger.debug("Clearing %d outcomes and %d participants", len(self._outcomes), len(self._participants))
        self._outcomes.clear()
        self._participants.clear()

    def to_dataframe(self) -> pl.DataFrame:
        """Export outcomes to a Polars DataFrame, one row per outcome."""
        return pl.DataFrame(
            {
                "first_id": [o.first.id for o in self._outcomes],
                "second_id": [o.second.id for o in self._outcomes],
                "first_score": [o.first_score for o in self._outcomes],
                "second_score": [o.second_score for o in self._outcomes],
            },
            schema={
                "first_id": pl.Int64,
                "second_id": pl.Int64,
                "first_score": pl.Float64,
                "second_score": pl.Float64,
            },
        )

    def __contains__(self, entity) -> bool:
        return entity in self._participants

    def __len__(self) -> int:
        return self.num_outcomes

    def __repr__(self) -> str:
        return f"RatingPeriod(outcomes={self.num_outcomes:,}, participants={self.num_participants:,})"
