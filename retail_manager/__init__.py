"""Retail Manager: back office for a small phone shop."""

__version__ = "1.0.0"
