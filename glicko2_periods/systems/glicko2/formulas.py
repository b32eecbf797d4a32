"""
Glicko-2 formula set used by the Calculator.

The Calculator is composed with any object that satisfies RatingFormulas.
Glicko2Formulas is the default and runs the Numba kernels; an alternative
(a different variance term, say) is supplied by passing another object.
"""

import logging
import math
from typing import Protocol, Tuple

import numpy as np

from ...errors import ConvergenceError
from . import _numba_core as core

logger = logging.getLogger(__name__)


class RatingFormulas(Protocol):
    """Numeric operations a Calculator needs, all on the internal (mu, phi) scale."""

    def g(self, phi: float) -> float:
        ...

    def expected_score(self, mu: float, opp_mu: float, opp_phi: float) -> float:
        ...

    def accumulate(
        self,
        mu: float,
        opp_mus: np.ndarray,
        opp_phis: np.ndarray,
        scores: np.ndarray,
    ) -> Tuple[float, float]:
        ...

    def solve_volatility(
        self,
        phi: float,
        sigma: float,
        delta: float,
        v: float,
        tau: float,
        epsilon: float,
        max_iterations: int,
    ) -> float:
        ...

    def win_probability(self, mu: float, phi: float, opp_mu: float, opp_phi: float) -> float:
        ...


class Glicko2Formulas:
    """Standard Glicko-2 formulas (Glickman, 2012)."""

    def g(self, phi: float) -> float:
        """Discount an opponent's influence by its own uncertainty."""
        return float(core.g(phi))

    def expected_score(self, mu: float, opp_mu: float, opp_phi: float) -> float:
        return float(core.expected_score(mu, opp_mu, opp_phi))

    def accumulate(
        self,
        mu: float,
        opp_mus: np.ndarray,
        opp_phis: np.ndarray,
        scores: np.ndarray,
    ) -> Tuple[float, float]:
        """
        Sum the opponent terms of one participant's period.

        Returns:
            (v_inv, delta_sum): inverse estimated variance and the
            sum of g(phi_j) * (s_j - E_j)
        """
        v_inv, delta_sum = core.accumulate_opponents(
            mu,
            np.ascontiguousarray(opp_mus, dtype=np.float64),
            np.ascontiguousarray(opp_phis, dtype=np.float64),
            np.ascontiguousarray(scores, dtype=np.float64),
        )
        return float(v_inv), float(delta_sum)

    def volatility_objective(
        self,
        x: float,
        phi: float,
        sigma: float,
        delta: float,
        v: float,
        tau: float,
    ) -> float:
        """f(x) from step 5 of the algorithm; its root is ln(sigma'^2)."""
        return float(core.volatility_objective(x, delta * delta, phi * phi, v, math.log(sigma * sigma), tau))

    def solve_volatility(
        self,
        phi: float,
        sigma: float,
        delta: float,
        v: float,
        tau: float,
        epsilon: float,
        max_iterations: int,
    ) -> float:
        """
        Solve for the new volatility sigma'.

        Raises:
            ConvergenceError: if the bracket search or the Illinois iteration
                runs past max_iterations, or an iterate stops being finite
        """
        sigma_prime, iterations, status = core.solve_volatility(
            phi, sigma, delta, v, tau, epsilon, int(max_iterations)
        )
        if status == core.SOLVER_BRACKET_EXHAUSTED:
            raise ConvergenceError(
                f"Volatility bracket search found no sign change within {max_iterations} steps"
            )
        if status == core.SOLVER_ITERATIONS_EXHAUSTED:
            raise ConvergenceError(
                f"Volatility solver did not converge within {max_iterations} iterations (epsilon={epsilon})"
            )
        if status != core.SOLVER_OK:
            raise ConvergenceError(
                f"Volatility solver produced a non-finite iterate (phi={phi}, sigma={sigma}, delta={delta}, v={v})"
            )

        logger.debug("Volatility solver converged in %d iterations: %.8f -> %.8f", iterations, sigma, sigma_prime)
        return float(sigma_prime)

    def win_probability(self, mu: float, phi: float, opp_mu: float, opp_phi: float) -> float:
        """P(first beats second), discounting by both deviations combined."""
        return float(core.predict_single(mu, phi, opp_mu, opp_phi))
