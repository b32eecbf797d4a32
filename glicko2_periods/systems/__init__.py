"""Rating system implementations.

- Glicko2: Glicko-2 over explicit rating periods, with a Numba-compiled
  volatility solver
"""

from .glicko2 import (
    Calculator,
    CalculatorConfig,
    Glicko2,
    Glicko2Config,
    Glicko2Formulas,
    RatingFormulas,
)

__all__ = [
    "Calculator",
    "CalculatorConfig",
    "Glicko2",
    "Glicko2Config",
    "Glicko2Formulas",
    "RatingFormulas",
]
