"""
glicko2_periods - Glicko-2 ratings updated in explicit rating periods.

Outcomes are collected into a rating period; at period end every
participant is rated against the others' pre-period ratings, all updates
are staged, and only then committed. The volatility solver is
Numba-compiled.

Quick Start:
    from glicko2_periods import Glicko2

    glicko2 = Glicko2(tau=0.5)
    alice = glicko2.create_entity()
    bob = glicko2.create_entity(rating=1600, deviation=80)

    glicko2.record_result(alice, bob)              # alice beat bob
    glicko2.record_result(alice, bob, draw=True)
    glicko2.update_ratings()

    print(alice.rating, alice.deviation, alice.volatility)
    print(glicko2.predict(alice, bob))  # P(alice beats bob)
    print(glicko2.standings())

Lower level:
    from glicko2_periods import Calculator, MatchOutcome, RatingEntity, RatingPeriod

    period = RatingPeriod()
    period.add_outcome(MatchOutcome(alice, bob, 1.0, 0.0))
    Calculator().update_period(period)
"""

from .base import RatingEntity, RatingUpdate
from .data import MatchOutcome, RatingPeriod
from .errors import (
    ConvergenceError,
    DegenerateInputError,
    Glicko2Error,
    InvalidOutcomeError,
)
from .systems import (
    Calculator,
    CalculatorConfig,
    Glicko2,
    Glicko2Config,
    Glicko2Formulas,
    RatingFormulas,
)

__version__ = "0.1.0"

__all__ = [
    # Base
    "RatingEntity",
    "RatingUpdate",
    # Data
    "MatchOutcome",
    "RatingPeriod",
    # Systems
    "Calculator",
    "CalculatorConfig",
    "Glicko2",
    "Glicko2Config",
    "Glicko2Formulas",
    "RatingFormulas",
    # Errors
    "Glicko2Error",
    "InvalidOutcomeError",
    "DegenerateInputError",
    "ConvergenceError",
]
