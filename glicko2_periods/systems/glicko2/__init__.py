"""Glicko-2 rating system implementation."""

from .calculator import Calculator, CalculatorConfig
from .formulas import Glicko2Formulas, RatingFormulas
from .glicko2 import Glicko2, Glicko2Config

__all__ = [
    "Calculator",
    "CalculatorConfig",
    "Glicko2Formulas",
    "RatingFormulas",
    "Glicko2",
    "Glicko2Config",
]
