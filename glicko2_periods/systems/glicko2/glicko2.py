"""
Glicko-2 rating system over explicit rating periods.

Hosts create participants, record match results as they finish and call
update_ratings() at the end of each rating period. The update is a
two-phase pass (stage every participant, then commit every participant),
so all participants are rated against the ratings they had when the
period closed.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import polars as pl

from ...base import RatingEntity, RatingUpdate
from ...data import MatchOutcome, RatingPeriod
from .calculator import Calculator, CalculatorConfig
from .formulas import RatingFormulas


@dataclass
class Glicko2Config:
    """Configuration for the Glicko-2 rating system."""

    initial_rating: float = 1500.0
    initial_rd: float = 350.0
    initial_volatility: float = 0.06
    win_score: float = 1.0
    draw_score: float = 0.5
    loss_score: float = 0.0
    calculator: CalculatorConfig = field(default_factory=CalculatorConfig)


class Glicko2:
    """
    Glicko-2 rating system with batched rating periods.

    Recording and the update pass are guarded by one re-entrant lock, so a
    single instance can be fed from several threads.

    Parameters:
        initial_rating: Starting rating for new entities (default: 1500)
        initial_rd: Starting rating deviation (default: 350)
        initial_volatility: Starting volatility (default: 0.06)
        tau: Volatility constraint (default: 0.75, typically 0.3 to 1.2)
        epsilon: Convergence tolerance of the volatility solver (default: 1e-6)
        standard_rating: Rating mapped to the centre of the Glicko-2 scale
        max_rd: Optional ceiling on deviation growth while idle
        win_score, draw_score, loss_score: Scores used by record_result()
        period: Rating period to record into (default: a new empty one)
        formulas: Alternative formula set for the calculator

    Example:
        >>> glicko2 = Glicko2(tau=0.5)
        >>> alice, bob = glicko2.create_entity(), glicko2.create_entity()
        >>> glicko2.record_result(alice, bob)
        >>> glicko2.update_ratings()
        >>> print(glicko2.standings())
    """

    def __init__(
        self,
        initial_rating: float = 1500.0,
        initial_rd: float = 350.0,
        initial_volatility: float = 0.06,
        tau: float = 0.75,
        epsilon: float = 0.000001,
        standard_rating: float = 1500.0,
        max_rd: Optional[float] = None,
        win_score: float = 1.0,
        draw_score: float = 0.5,
        loss_score: float = 0.0,
        period: Optional[RatingPeriod] = None,
        formulas: Optional[RatingFormulas] = None,
    ):
        self.config = Glicko2Config(
            initial_rating=initial_rating,
            initial_rd=initial_rd,
            initial_volatility=initial_volatility,
            win_score=win_score,
            draw_score=draw_score,
            loss_score=loss_score,
            calculator=CalculatorConfig(
                standard_rating=standard_rating,
                volatility_constraint=tau,
                convergence_tolerance=epsilon,
                max_deviation=max_rd,
            ),
        )
        self.period = period if period is not None else RatingPeriod()
        self.calculator = Calculator(self.config.calculator, formulas=formulas)
        self._lock = threading.RLock()
        self._num_periods = 0

    @property
    def num_periods(self) -> int:
        """Number of completed update passes."""
        return self._num_periods

    def create_entity(
        self,
        rating: Optional[float] = None,
        deviation: Optional[float] = None,
        volatility: Optional[float] = None,
    ) -> RatingEntity:
        """Create an entity, filling unspecified values from the configured defaults."""
        return RatingEntity(
            rating=self.config.initial_rating if rating is None else rating,
            deviation=self.config.initial_rd if deviation is None else deviation,
            volatility=self.config.initial_volatility if volatility is None else volatility,
        )

    def record_result(self, winner: RatingEntity, loser: RatingEntity, draw: bool = False) -> MatchOutcome:
        """
        Record a finished match using the configured scores.

        Args:
            winner: Winning participant (or either participant on a draw)
            loser: Losing participant
            draw: Score both with draw_score instead

        Returns:
            The recorded MatchOutcome
        """
        if draw:
            outcome = MatchOutcome(winner, loser, self.config.draw_score, self.config.draw_score)
        else:
            outcome = MatchOutcome(winner, loser, self.config.win_score, self.config.loss_score)
        self.record_outcome(outcome)
        return outcome

    def record_outcome(self, outcome: MatchOutcome) -> None:
        with self._lock:
            self.period.add_outcome(outcome)

    def add_participant(self, entity: RatingEntity) -> None:
        """Carry entity through the next update even if it plays no matches."""
        with self._lock:
            self.period.add_participant(entity)

    def outcomes_for(self, entity: RatingEntity) -> List[MatchOutcome]:
        with self._lock:
            return self.period.outcomes_for(entity)

    def update_ratings(self) -> Dict[RatingEntity, RatingUpdate]:
        """
        Rate every participant of the current period and start the next one.

        Clears the recorded outcomes but keeps the participants, so idle
        participants keep receiving deviation updates in later periods.
        """
        with self._lock:
            updates = self.calculator.update_period(self.period, retain_participants=True)
            self._num_periods += 1
            return updates

    def predict(self, entity: RatingEntity, opponent: RatingEntity) -> float:
        """Predict probability that entity beats opponent."""
        return self.calculator.win_probability(entity, opponent)

    def standings(self) -> pl.DataFrame:
        """All participants of the period, best rating first."""
        with self._lock:
            participants = self.period.participants

        return pl.DataFrame(
            {
                "id": [e.id for e in participants],
                "rating": [e.rating for e in participants],
                "rd": [e.deviation for e in participants],
                "volatility": [e.volatility for e in participants],
            },
            schema={
                "id": pl.Int64,
                "rating": pl.Float64,
                "rd": pl.Float64,
                "volatility": pl.Float64,
            },
        ).sort("rating", descending=True).with_row_index("rank", offset=1)

    def __repr__(self) -> str:
        return (
            f"Glicko2(tau={self.config.calculator.volatility_constraint}, "
            f"participants={self.period.num_participants}, "
            f"outcomes={self.period.num_outcomes}, periods={self._num_periods})"
        )
