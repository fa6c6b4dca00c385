"""Retroactive reconstruction of engineering history from Git commit logs."""

__version__ = "0.1.0"
