"""
The Supervisor package.
Manages the lifecycle of the application process inside the container.

This package contains the StartupWrapper class and its helper modules, which
together wait for the mount, start and stop the application, and flush the
database before the container is reclaimed.
"""
from .mount import MountNotReadyError
from .shutdown import ShutdownReport, ShutdownState
from .supervisor import StartupWrapper

__all__ = ['StartupWrapper', 'MountNotReadyError', 'ShutdownReport', 'ShutdownState']
