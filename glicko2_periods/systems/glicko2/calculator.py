"""
Glicko-2 calculator: per-participant updates and the two-phase period update.

Every computation reads committed values only and returns a RatingUpdate,
so the result for one participant never depends on the order in which the
others are processed. Staging and committing are separate passes over the
period, with the commit pass starting only once every participant is staged.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from ...base import RatingEntity, RatingUpdate
from ...data import MatchOutcome, RatingPeriod
from ...errors import DegenerateInputError
from .formulas import Glicko2Formulas, RatingFormulas

logger = logging.getLogger(__name__)


@dataclass
class CalculatorConfig:
    """Configuration for the Glicko-2 calculator."""

    standard_rating: float = 1500.0  # Rating mapped to mu = 0
    volatility_constraint: float = 0.75  # tau (typically 0.3 to 1.2)
    convergence_tolerance: float = 0.000001  # epsilon
    max_iterations: int = 1000  # Cap for each volatility solver loop
    scale: float = 173.7178  # Conversion factor from Glicko to Glicko-2 scale
    max_deviation: Optional[float] = None  # Ceiling on idle deviation growth

    def __post_init__(self):
        if not self.volatility_constraint > 0:
            raise ValueError(f"volatility_constraint must be positive, got {self.volatility_constraint}")
        if not self.convergence_tolerance > 0:
            raise ValueError(f"convergence_tolerance must be positive, got {self.convergence_tolerance}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if self.max_deviation is not None and not self.max_deviation > 0:
            raise ValueError(f"max_deviation must be positive, got {self.max_deviation}")


class Calculator:
    """
    Glicko-2 rating calculator.

    Parameters:
        config: Calculator configuration (default: CalculatorConfig())
        formulas: Formula set to compute with (default: Glicko2Formulas())

    Example:
        >>> calculator = Calculator(CalculatorConfig(volatility_constraint=0.5))
        >>> update = calculator.rate(player, period.outcomes_for(player))
        >>> calculator.update_period(period)
    """

    def __init__(
        self,
        config: Optional[CalculatorConfig] = None,
        formulas: Optional[RatingFormulas] = None,
    ):
        self.config = config or CalculatorConfig()
        self.formulas = formulas or Glicko2Formulas()

    # ------------------------------------------------------------------
    # Scale conversion
    # ------------------------------------------------------------------

    def to_internal(self, rating: float, deviation: float) -> Tuple[float, float]:
        """Convert (rating, RD) to Glicko-2 scale (mu, phi)."""
        return (
            (rating - self.config.standard_rating) / self.config.scale,
            deviation / self.config.scale,
        )

    def from_internal(self, mu: float, phi: float) -> Tuple[float, float]:
        """Convert (mu, phi) back to (rating, RD)."""
        return (
            mu * self.config.scale + self.config.standard_rating,
            phi * self.config.scale,
        )

    # ------------------------------------------------------------------
    # Single participant
    # ------------------------------------------------------------------

    def rate(self, entity: RatingEntity, outcomes: Sequence[MatchOutcome]) -> RatingUpdate:
        """
        Compute the next state of entity from its outcomes in a period.

        Pure: neither entity nor its opponents are modified.

        Args:
            entity: Participant to rate
            outcomes: Outcomes involving entity (empty for an idle period)

        Returns:
            RatingUpdate with the new rating, deviation and volatility

        Raises:
            DegenerateInputError: invalid committed values, an outcome that does
                not resolve to one opponent, or zero total variance
            ConvergenceError: the volatility solver hit its iteration cap
        """
        rating, deviation, sigma = _committed_state(entity)
        mu, phi = self.to_internal(rating, deviation)

        if len(outcomes) == 0:
            return self._idle_update(entity, rating, phi, sigma)

        n_games = len(outcomes)
        opp_mus = np.empty(n_games, dtype=np.float64)
        opp_phis = np.empty(n_games, dtype=np.float64)
        scores = np.empty(n_games, dtype=np.float64)

        for i, outcome in enumerate(outcomes):
            opponent = _resolve_opponent(entity, outcome)
            opp_rating, opp_deviation, _ = _committed_state(opponent)
            opp_mus[i], opp_phis[i] = self.to_internal(opp_rating, opp_deviation)
            scores[i] = outcome.score_for(entity)

        v_inv, delta_sum = self.formulas.accumulate(mu, opp_mus, opp_phis, scores)
        if not (math.isfinite(v_inv) and v_inv > 0.0):
            raise DegenerateInputError(
                f"Entity {entity.id}: estimated variance is degenerate (1/v = {v_inv})"
            )
        v = 1.0 / v_inv
        if not math.isfinite(v):
            raise DegenerateInputError(f"Entity {entity.id}: estimated variance overflowed")

        delta = v * delta_sum

        new_sigma = self.formulas.solve_volatility(
            phi,
            sigma,
            delta,
            v,
            self.config.volatility_constraint,
            self.config.convergence_tolerance,
            self.config.max_iterations,
        )

        phi_star = math.sqrt(phi * phi + new_sigma * new_sigma)
        new_phi = 1.0 / math.sqrt(1.0 / (phi_star * phi_star) + 1.0 / v)
        new_mu = mu + new_phi * new_phi * delta_sum

        new_rating, new_deviation = self.from_internal(new_mu, new_phi)
        if not all(math.isfinite(x) for x in (new_rating, new_deviation, new_sigma)):
            raise DegenerateInputError(f"Entity {entity.id}: update produced non-finite values")

        return RatingUpdate(new_rating, new_deviation, new_sigma)

    def _idle_update(self, entity: RatingEntity, rating: float, phi: float, sigma: float) -> RatingUpdate:
        """No games this period: only the deviation grows."""
        new_phi = math.sqrt(phi * phi + sigma * sigma)
        new_deviation = new_phi * self.config.scale

        max_deviation = self.config.max_deviation
        if max_deviation is not None and new_deviation > max_deviation:
            logger.debug("Entity %d: idle deviation %.2f clipped to %.2f", entity.id, new_deviation, max_deviation)
            new_deviation = max_deviation

        return RatingUpdate(rating, new_deviation, sigma)

    def stage(self, entity: RatingEntity, outcomes: Sequence[MatchOutcome]) -> RatingUpdate:
        """Compute entity's update and write it to its staging area."""
        update = self.rate(entity, outcomes)
        entity.stage(update.rating, update.deviation, update.volatility)
        return update

    def win_probability(self, entity: RatingEntity, opponent: RatingEntity) -> float:
        """Probability that entity beats opponent under the committed ratings."""
        rating, deviation, _ = _committed_state(entity)
        opp_rating, opp_deviation, _ = _committed_state(opponent)
        mu, phi = self.to_internal(rating, deviation)
        opp_mu, opp_phi = self.to_internal(opp_rating, opp_deviation)
        return self.formulas.win_probability(mu, phi, opp_mu, opp_phi)

    # ------------------------------------------------------------------
    # Whole period
    # ------------------------------------------------------------------

    def compute_period(self, period: RatingPeriod) -> Dict[RatingEntity, RatingUpdate]:
        """Compute every participant's next state from committed values only."""
        return {
            entity: self.rate(entity, period.outcomes_for(entity))
            for entity in period.participants
        }

    def update_period(
        self,
        period: RatingPeriod,
        retain_participants: bool = True,
    ) -> Dict[RatingEntity, RatingUpdate]:
        """
        Run the full update pass over a rating period.

        1. Compute all updates (nothing is modified if any participant fails)
        2. Stage every update
        3. Commit every update
        4. Clear the period's outcomes (and participants unless retained)

        Args:
            period: Rating period to process
            retain_participants: Keep the roster for the next period

        Returns:
            The committed update of every participant
        """
        updates = self.compute_period(period)

        for entity, update in updates.items():
            entity.stage(update.rating, update.deviation, update.volatility)
        logger.debug("Staged %d participants", len(updates))

        for entity in updates:
            entity.commit()
        logger.debug("Committed %d participants", len(updates))

        num_outcomes = period.num_outcomes
        if retain_participants:
            period.clear_outcomes()
        else:
            period.clear()

        logger.info("Rating period updated: %d participants, %d outcomes", len(updates), num_outcomes)
        return updates

    def __repr__(self) -> str:
        return (
            f"Calculator(tau={self.config.volatility_constraint}, "
            f"epsilon={self.config.convergence_tolerance}, "
            f"formulas={type(self.formulas).__name__})"
        )


def _committed_state(entity: RatingEntity) -> Tuple[float, float, float]:
    rating, deviation, volatility = entity.rating, entity.deviation, entity.volatility
    if not math.isfinite(rating):
        raise DegenerateInputError(f"Entity {entity.id}: rating must be finite, got {rating}")
    if not (math.isfinite(deviation) and deviation > 0):
        raise DegenerateInputError(f"Entity {entity.id}: deviation must be positive and finite, got {deviation}")
    if not (math.isfinite(volatility) and volatility > 0):
        raise DegenerateInputError(f"Entity {entity.id}: volatility must be positive and finite, got {volatility}")
    return rating, deviation, volatility


def _resolve_opponent(entity: RatingEntity, outcome: MatchOutcome) -> RatingEntity:
    participants = tuple(outcome.participants)
    if entity not in participants:
        raise DegenerateInputError(f"Outcome {outcome!r} does not involve entity {entity.id}")
    opponents = [p for p in participants if p != entity]
    if len(opponents) != 1:
        raise DegenerateInputError(f"Outcome {outcome!r} has no single opponent for entity {entity.id}")
    return opponents[0]
