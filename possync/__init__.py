"""Offline-first sync and cash-session reconciliation for a POS terminal."""

__version__ = "1.0.0"
