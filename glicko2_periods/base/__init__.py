"""Participant state for rating periods."""

from .entity import RatingEntity, RatingUpdate

__all__ = ["RatingEntity", "RatingUpdate"]
