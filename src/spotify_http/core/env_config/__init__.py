"""
Environment configuration for Spotify HTTP Core.

Example:
    >>> from spotify_http.core.env_config import load_from_env
    >>>
    >>> config = load_from_env()                      # SPOTIFY_HTTP_* + .env
    >>> config = load_from_env(env_file=".env.prod")  # custom file
    >>> config = load_from_env(socket_timeout=10)     # explicit override
"""

from .loader import load_from_env
from .validator import HttpManagerSettings

__all__ = [
    "load_from_env",
    "HttpManagerSettings",
]
