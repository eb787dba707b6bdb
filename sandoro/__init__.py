"""Sandoro: a Pomodoro / flowtime focus timer."""

__version__ = "0.1.0"
