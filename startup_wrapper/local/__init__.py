"""
Local package for the startup wrapper.

This package provides the settings object and the database and supervisor
helpers that run inside the container.
"""

from .config import SupervisorSettings

__all__ = ["SupervisorSettings"]
