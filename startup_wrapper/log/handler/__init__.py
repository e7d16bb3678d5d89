"""
Logging handlers for the startup wrapper.
"""

from .loki import LokiHandler

__all__ = ["LokiHandler"]
