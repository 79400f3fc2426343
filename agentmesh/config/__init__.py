"""
Configuration Module

Provides centralized configuration with environment variable support.

Usage:
    from agentmesh.config import get_settings, Defaults

    settings = get_settings()

    from agentmesh.config import Environment
    if Environment.is_development():
        print("Running in development mode")
"""

from .settings import Settings, get_settings
from .defaults import Defaults, Environment

__all__ = [
    "Settings",
    "get_settings",
    "Defaults",
    "Environment",
]
