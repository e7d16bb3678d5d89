"""
Logging module for the startup wrapper.
This module provides functionality to set up console and Loki logging.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
