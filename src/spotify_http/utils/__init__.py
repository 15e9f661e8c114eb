"""Utility modules for Spotify HTTP Core."""

from .sanitizer import (
    mask_sensitive_data,
    mask_url,
    mask_headers,
)

__all__ = [
    'mask_sensitive_data',
    'mask_url',
    'mask_headers',
]
