"""Compensation subsystem — treasury for mint proceeds."""

from mintgate.compensation.treasury import Treasury

__all__ = ["Treasury"]
