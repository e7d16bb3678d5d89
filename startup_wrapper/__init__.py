"""
Startup wrapper for running a SQLite-backed application on a FUSE-mounted
object store bucket.

The wrapper waits for the mount, reconciles leftover WAL files, supervises the
application process and checkpoints the database before the container exits.
"""

__version__ = "1.0.0"
