"""Read-only HTTP browser for a split output directory."""

from .config import ServerRuntimeConfig
from .main import create_app

__all__ = ["ServerRuntimeConfig", "create_app"]
