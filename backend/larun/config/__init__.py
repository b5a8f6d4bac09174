"""Config module - application settings loaded from environment / .env."""

from .settings import Settings, settings

__all__ = ['Settings', 'settings']
