"""Configuration module for the user lookup service."""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
