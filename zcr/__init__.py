"""zcr — Zenit Community Repository package manager."""

__version__ = "0.3.0"
