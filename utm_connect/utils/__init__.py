"""Shared utilities."""

from .masking import mask_database_url, mask_token

__all__ = ["mask_database_url", "mask_token"]
