"""
fsbackup Core - Backup and restore service layer.

Contains configuration, the backup-set catalog, partition discovery, the
backup and restore engines, and session management.
"""

from fsbackup.core.backup import BackupEngine
from fsbackup.core.catalog import BackupCatalog
from fsbackup.core.config import FsBackupConfig
from fsbackup.core.discovery import PartitionDiscovery
from fsbackup.core.errors import ExitCode, FsBackupError
from fsbackup.core.logging import get_logger, setup_logging
from fsbackup.core.mount import MountManager
from fsbackup.core.resolver import DeviceResolver
from fsbackup.core.restore import RestoreEngine
from fsbackup.core.session import Session

__all__ = [
    "BackupCatalog",
    "BackupEngine",
    "DeviceResolver",
    "ExitCode",
    "FsBackupConfig",
    "FsBackupError",
    "MountManager",
    "PartitionDiscovery",
    "RestoreEngine",
    "Session",
    "get_logger",
    "setup_logging",
]
