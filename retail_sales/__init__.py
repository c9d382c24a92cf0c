"""Retail sales database with self-reconciling invoice totals."""

__version__ = "1.0.0"
