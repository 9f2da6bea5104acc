"""Bitwork — local skills and jobs marketplace."""

__version__ = "0.1.0"
