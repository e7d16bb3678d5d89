"""
This module provides the SQLite helpers used around the application's
lifecycle: the database file triple, the WAL checkpoint and the pre-start
recovery routine.
"""

from .wal import DatabaseFiles, checkpoint
from .recovery import RecoveryOutcome, recover_database

__all__ = ["DatabaseFiles", "checkpoint", "RecoveryOutcome", "recover_database"]
