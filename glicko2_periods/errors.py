"""Exceptions raised by the rating period machinery."""


class Glicko2Error(Exception):
    """Base class for all rating update errors."""


class InvalidOutcomeError(Glicko2Error, ValueError):
    """A match outcome does not name exactly two distinct participants with finite scores."""


class DegenerateInputError(Glicko2Error, ValueError):
    """The committed state or outcomes of a participant cannot produce a finite update."""


class ConvergenceError(Glicko2Error, RuntimeError):
    """The volatility solver exceeded its iteration cap or left the finite range."""
