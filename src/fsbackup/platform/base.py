"""
fsbackup Platform Backend Base.

Defines the abstract interface to the system utilities fsbackup drives.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fsbackup.core.models import MountInfo


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str | list[str],
        duration_seconds: float = 0.0,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def error_text(self) -> str:
        """Best available description of a failure."""
        text = (self.stderr or self.stdout).strip()
        return text.splitlines()[-1] if text else f"exit status {self.returncode}"

    def __repr__(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"CommandResult(rc={self.returncode}, cmd='{cmd[:50]}...')"


class PlatformBackend(ABC):
    """Abstract base class for the system collaborators."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform name (e.g., 'linux')."""

    @abstractmethod
    def is_admin(self) -> bool:
        """Check if running with admin privileges."""

    @abstractmethod
    def missing_tools(self, tools: list[str]) -> list[str]:
        """Return the subset of ``tools`` that cannot be found."""

    # ==================== Block Devices ====================

    @abstractmethod
    def list_block_devices(self) -> list[dict[str, Any]]:
        """Flat list of block devices with name, path, type, uuid, partuuid, label."""

    @abstractmethod
    def is_block_device(self, path: str) -> bool:
        """Whether ``path`` is a block special file."""

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        """Whether ``path`` exists at all."""

    @abstractmethod
    def canonical_path(self, path: str) -> str:
        """Path with every symlink resolved."""

    @abstractmethod
    def list_partitions(self, disk_path: str) -> list[dict[str, Any]]:
        """Partitions of a disk with their path and detected fstype."""

    @abstractmethod
    def get_fstype(self, device_path: str) -> str | None:
        """Filesystem type of a device, or None if undetectable."""

    @abstractmethod
    def get_root_source(self) -> str | None:
        """Device backing the running system's ``/``."""

    @abstractmethod
    def get_mounts(self) -> dict[str, MountInfo]:
        """Mapping of mounted device path to its mount information."""

    # ==================== Mounting ====================

    @abstractmethod
    def mount(self, device_path: str, mount_point: Path) -> CommandResult:
        """Mount a device."""

    @abstractmethod
    def unmount(self, target: str | Path) -> CommandResult:
        """Unmount a mount point or device."""

    # ==================== Partition Tables ====================

    @abstractmethod
    def get_label_type(self, disk_path: str) -> tuple[bool, str | None]:
        """
        Probe the disk label type.
        Returns (readable, label) where label is e.g. 'gpt' or 'dos'.
        """

    @abstractmethod
    def save_gpt_table(self, disk_path: str, output: Path) -> CommandResult:
        """Write a GPT backup of the disk to ``output``."""

    @abstractmethod
    def dump_partition_table(self, disk_path: str) -> CommandResult:
        """Textual dump of an MBR/DOS partition table (on stdout)."""

    @abstractmethod
    def load_gpt_table(self, dump: Path, disk_path: str) -> CommandResult:
        """Replay a GPT backup onto the disk."""

    @abstractmethod
    def load_partition_table(self, dump: Path, disk_path: str) -> CommandResult:
        """Replay a textual MBR/DOS dump onto the disk."""

    @abstractmethod
    def reread_partitions(self, disk_path: str) -> CommandResult:
        """Ask the kernel to re-read the disk's partition layout."""

    # ==================== Archiver ====================

    @abstractmethod
    def cpu_count(self) -> int:
        """Number of CPUs available for compression threads."""

    @abstractmethod
    def archive_filesystem(
        self,
        device_path: str,
        archive: Path,
        threads: int,
        compression_level: int,
        allow_live: bool = False,
        verbose: bool = True,
    ) -> CommandResult:
        """Save a filesystem into a single archive file."""

    @abstractmethod
    def restore_filesystem(self, archive: Path, device_path: str) -> CommandResult:
        """Restore the first filesystem of an archive onto a device."""

    # ==================== Files ====================

    @abstractmethod
    def directory_size(self, path: Path) -> int:
        """Total on-disk size in bytes of a directory tree."""
