"""
Numba-accelerated core functions for the Glicko-2 rating period update.

Design principles:
1. All hot-path functions compiled with @njit(cache=True)
2. One kernel call per participant: opponent values arrive as contiguous arrays
3. fastmath is left off: the degenerate-input checks rely on IEEE inf/NaN
4. Kernels never raise; they hand status codes back to the Python layer
"""

import math
import numpy as np
from numba import njit


# Status codes returned by solve_volatility
SOLVER_OK = 0
SOLVER_BRACKET_EXHAUSTED = 1
SOLVER_ITERATIONS_EXHAUSTED = 2
SOLVER_NON_FINITE = 3


# =============================================================================
# Core Glicko-2 functions
# =============================================================================

@njit(cache=True, inline="always")
def _g(phi: float) -> float:
    """Calculate g(phi) function."""
    return 1.0 / math.sqrt(1.0 + 3.0 * (phi * phi) / (math.pi * math.pi))


@njit(cache=True, inline="always")
def _expected_score(mu: float, opp_mu: float, opp_phi: float) -> float:
    """Calculate expected score in Glicko-2 scale."""
    g_phi = _g(opp_phi)
    return 1.0 / (1.0 + math.exp(-g_phi * (mu - opp_mu)))


@njit(cache=True)
def g(phi: float) -> float:
    return _g(phi)


@njit(cache=True)
def expected_score(mu: float, opp_mu: float, opp_phi: float) -> float:
    return _expected_score(mu, opp_mu, opp_phi)


@njit(cache=True)
def accumulate_opponents(
    mu: float,
    opp_mus: np.ndarray,
    opp_phis: np.ndarray,
    scores: np.ndarray,
) -> tuple:
    """
    Sum the per-opponent terms of one participant's rating period.

    Returns (v_inv, delta_sum) where v_inv is the inverse of the estimated
    variance and delta_sum is the sum of g(phi_j) * (s_j - E_j).
    """
    v_inv = 0.0
    delta_sum = 0.0

    for i in range(len(opp_mus)):
        g_val = _g(opp_phis[i])
        e_val = _expected_score(mu, opp_mus[i], opp_phis[i])

        v_inv += g_val * g_val * e_val * (1.0 - e_val)
        delta_sum += g_val * (scores[i] - e_val)

    return v_inv, delta_sum


@njit(cache=True, error_model="numpy")
def volatility_objective(
    x: float,
    delta_sq: float,
    phi_sq: float,
    v: float,
    a: float,
    tau: float,
) -> float:
    """The function f(x) whose root is ln(sigma'^2)."""
    ex = math.exp(x)
    num1 = ex * (delta_sq - phi_sq - v - ex)
    den1 = 2.0 * ((phi_sq + v + ex) ** 2)
    return num1 / den1 - (x - a) / (tau * tau)


# error_model="numpy": a zero secant denominator yields inf, caught below
@njit(cache=True, error_model="numpy")
def solve_volatility(
    phi: float,
    sigma: float,
    delta: float,
    v: float,
    tau: float,
    epsilon: float,
    max_iterations: int,
) -> tuple:
    """
    Find the new volatility with the Illinois variant of regula falsi.

    Returns (sigma_prime, iterations, status). sigma_prime is only
    meaningful when status == SOLVER_OK.
    """
    a = math.log(sigma * sigma)
    phi_sq = phi * phi
    delta_sq = delta * delta

    # Set initial bounds
    A = a
    if delta_sq > phi_sq + v:
        B = math.log(delta_sq - phi_sq - v)
    else:
        k = 1
        while volatility_objective(a - k * tau, delta_sq, phi_sq, v, a, tau) < 0:
            k += 1
            if k > max_iterations:
                return math.nan, k, SOLVER_BRACKET_EXHAUSTED
        B = a - k * tau

    f_A = volatility_objective(A, delta_sq, phi_sq, v, a, tau)
    f_B = volatility_objective(B, delta_sq, phi_sq, v, a, tau)
    if not (math.isfinite(f_A) and math.isfinite(f_B)):
        return math.nan, 0, SOLVER_NON_FINITE

    iterations = 0
    while abs(B - A) > epsilon:
        if iterations >= max_iterations:
            return math.nan, iterations, SOLVER_ITERATIONS_EXHAUSTED

        C = A + (A - B) * f_A / (f_B - f_A)
        f_C = volatility_objective(C, delta_sq, phi_sq, v, a, tau)
        if not (math.isfinite(C) and math.isfinite(f_C)):
            return math.nan, iterations, SOLVER_NON_FINITE

        if f_C * f_B <= 0:
            A = B
            f_A = f_B
        else:
            f_A = f_A / 2.0

        B = C
        f_B = f_C
        iterations += 1

    return math.exp(A / 2.0), iterations, SOLVER_OK


# =============================================================================
# Prediction functions
# =============================================================================

@njit(cache=True)
def predict_single(
    mu1: float,
    phi1: float,
    mu2: float,
    phi2: float,
) -> float:
    """Predict win probability for a single matchup."""
    combined_phi = math.sqrt(phi1 * phi1 + phi2 * phi2)
    g_combined = _g(combined_phi)
    return 1.0 / (1.0 + math.exp(-g_combined * (mu1 - mu2)))
