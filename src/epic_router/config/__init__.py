"""
Configuration for the epic router.

Environment-based settings management using Pydantic Settings.
"""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
