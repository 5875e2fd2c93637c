"""Shared utilities."""

from costpool.utils.sanitize import sanitize_for_logging

__all__ = ["sanitize_for_logging"]
