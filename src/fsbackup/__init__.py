"""
fsbackup - Partition-level filesystem backup and restore.

Snapshots a disk's partition table and archives selected partitions with
fsarchiver into timestamped backup-sets, and rebuilds disks from them.
"""

__version__ = "1.0.0"
__author__ = "fsbackup Team"

from fsbackup.core.config import FsBackupConfig
from fsbackup.core.session import Session

__all__ = ["FsBackupConfig", "Session", "__version__"]
