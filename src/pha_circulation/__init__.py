"""Circulating supply aggregation for the PHA token."""

__version__ = "0.1.0"
