"""Streaming cost pool classification of uploaded financial data."""

__version__ = "0.1.0"
