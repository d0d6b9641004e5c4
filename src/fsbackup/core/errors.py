"""
fsbackup exceptions.

Exception Hierarchy:
    FsBackupError (base)
        ├── PreconditionError
        │   ├── PrivilegeError
        │   ├── ToolMissing
        │   ├── DeviceNotFound
        │   ├── NotABlockDevice
        │   ├── PathCreateFailed
        │   └── MountFailed
        ├── BackupSetError
        │   ├── BackupSetNotFound
        │   ├── CorruptBackupSet
        │   ├── EmptyBackupSet
        │   └── PartitionTableError
        └── NoEligiblePartitions

Every error names the device, backup-set or partition it concerns and
carries the process exit code the CLI reports for it. Per-partition
archiver failures are not exceptions; they are collected as results.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path


class ExitCode(IntEnum):
    """Process exit codes used by every entry point."""

    OK = 0
    FAILURE = 1
    USAGE = 2
    PRECONDITION = 3
    DEVICE = 4
    MOUNT = 5
    BACKUP_SET = 6
    NO_PARTITIONS = 7
    INTERRUPTED = 130


class FsBackupError(Exception):
    """Base exception for all fsbackup operations."""

    exit_code: ExitCode = ExitCode.FAILURE


class PreconditionError(FsBackupError):
    """A precondition of the run does not hold; nothing was attempted."""

    exit_code = ExitCode.PRECONDITION


class PrivilegeError(PreconditionError):
    """The process lacks the privileges needed for block-device access."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"'{command}' must be run as root (try sudo)")


class ToolMissing(PreconditionError):
    """A required external tool is not installed."""

    def __init__(self, tools: list[str]):
        self.tools = tools
        super().__init__(f"Required tool(s) not found: {', '.join(tools)}")


class DeviceNotFound(PreconditionError):
    """No block device matches the given token."""

    exit_code = ExitCode.DEVICE

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"No valid device was found for '{token}'")


class NotABlockDevice(PreconditionError):
    """The resolved path exists but is not a block special file."""

    exit_code = ExitCode.DEVICE

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"'{path}' is not a block device")


class PathCreateFailed(PreconditionError):
    """A required directory could not be located or created."""

    exit_code = ExitCode.MOUNT

    def __init__(self, path: Path | str, reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        msg = f"Unable to locate or create '{path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class MountFailed(PreconditionError):
    """The backup device could not be mounted."""

    exit_code = ExitCode.MOUNT

    def __init__(self, device: str, mount_point: Path | str, reason: str = ""):
        self.device = device
        self.mount_point = Path(mount_point)
        self.reason = reason
        msg = f"Unable to mount the backup device '{device}' at '{mount_point}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class BackupSetError(FsBackupError):
    """Base exception for missing or damaged backup-set data."""

    exit_code = ExitCode.BACKUP_SET


class BackupSetNotFound(BackupSetError):
    """The named backup-set does not exist under the backup root."""

    def __init__(self, name: str, root: Path | str):
        self.name = name
        self.root = Path(root)
        super().__init__(f"Backup-set '{name}' not found in '{root}'")


class CorruptBackupSet(BackupSetError):
    """The backup-set's partition-table marker or dump is missing or invalid."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Backup-set '{path}' is unusable: {reason}")


class EmptyBackupSet(BackupSetError):
    """The backup-set holds no partition archives."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"No .fsa archives found in '{path}'")


class PartitionTableError(BackupSetError):
    """The partition table of a disk could not be saved or replayed."""

    def __init__(self, disk: str, reason: str):
        self.disk = disk
        self.reason = reason
        super().__init__(f"Partition table operation failed on '{disk}': {reason}")


class NoEligiblePartitions(FsBackupError):
    """Filtering left nothing to back up or restore."""

    exit_code = ExitCode.NO_PARTITIONS

    def __init__(self, target: str, reason: str = ""):
        self.target = target
        msg = f"No eligible partitions for '{target}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
