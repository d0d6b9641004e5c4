"""
fsbackup data models.

Defines the data structures for partitions, backup-sets and run reports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any

PT_TYPE_FILE = "pt-type"
ARCHIVE_EXTENSION = ".fsa"


class PartitionTableKind(Enum):
    """Partition table kind, selecting the save/restore primitive."""

    GPT = "gpt"
    DOS = "dos"

    @property
    def dump_filename(self) -> str:
        return "disk-pt.gpt" if self is PartitionTableKind.GPT else "disk-pt.sf"

    @classmethod
    def from_label(cls, label: str | None) -> PartitionTableKind:
        """Map a probed disk label; anything but GPT takes the legacy path."""
        if label and label.strip().lower() == "gpt":
            return cls.GPT
        return cls.DOS

    @classmethod
    def from_marker(cls, marker: str) -> PartitionTableKind | None:
        """Parse the contents of a ``pt-type`` file, or None if unrecognized."""
        value = marker.strip()
        for kind in cls:
            if kind.value == value:
                return kind
        return None


@dataclass(frozen=True)
class PartitionId:
    """A partition identified by its disk and the suffix after the disk name."""

    disk_path: str  # e.g., /dev/sda or /dev/nvme0n1
    suffix: str  # e.g., 1 or p1

    @property
    def device_path(self) -> str:
        return f"{self.disk_path}{self.suffix}"

    @property
    def number(self) -> str:
        return self.suffix.lstrip("p")

    @classmethod
    def from_device(cls, disk_path: str, device_path: str) -> PartitionId:
        """Split a partition device path into disk and suffix."""
        if not device_path.startswith(disk_path) or device_path == disk_path:
            raise ValueError(f"{device_path} is not a partition of {disk_path}")
        return cls(disk_path=disk_path, suffix=device_path[len(disk_path):])

    def on_disk(self, disk_path: str) -> PartitionId:
        """Re-target this partition to another disk using kernel naming rules."""
        separator = "p" if re.search(r"\d$", disk_path) else ""
        return PartitionId(disk_path=disk_path, suffix=f"{separator}{self.number}")

    def __str__(self) -> str:
        return self.device_path


@dataclass
class PartitionCandidate:
    """A partition considered for backup during one discovery pass."""

    partition: PartitionId
    fstype: str
    is_active_root: bool = False
    included: bool = False

    @property
    def device_path(self) -> str:
        return self.partition.device_path


@dataclass
class MountInfo:
    """Mount state of a block device."""

    device: str
    mountpoint: str
    fstype: str = ""
    options: list[str] = field(default_factory=list)

    @property
    def read_write(self) -> bool:
        return "rw" in self.options


@dataclass(frozen=True)
class BackupSetEntry:
    """One row of the backup-set catalog."""

    name: str
    comment: str
    path: Path

    def __str__(self) -> str:
        return f"{self.name}: {self.comment}"


@dataclass
class BackupSet:
    """A named directory holding a partition-table snapshot and archives."""

    name: str
    path: Path
    table_kind: PartitionTableKind | None = None
    comment: str = ""
    archives: dict[str, Path] = field(default_factory=dict)

    @property
    def table_dump_path(self) -> Path | None:
        if self.table_kind is None:
            return None
        return self.path / self.table_kind.dump_filename

    @property
    def created_at(self) -> datetime | None:
        """Creation time embedded in the name, if it follows the default format."""
        match = re.match(r"(\d{8}_\d{6})", self.name)
        if not match:
            return None
        try:
            return datetime.strptime(match.group(1), "%Y%m%d_%H%M%S")
        except ValueError:
            return None

    def archive_path(self, suffix: str) -> Path:
        return self.path / f"{suffix}{ARCHIVE_EXTENSION}"

    def archive_for(self, partition: PartitionId) -> Path:
        """Archive holding the same partition number, whatever the disk naming."""
        for suffix, path in self.archives.items():
            if suffix.lstrip("p") == partition.number:
                return path
        return self.archive_path(partition.suffix)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path),
            "table_kind": self.table_kind.value if self.table_kind else None,
            "comment": self.comment,
            "archives": {k: str(v) for k, v in self.archives.items()},
        }


class RunStatus(Enum):
    """Terminal state of a backup or restore run."""

    COMPLETED = auto()  # every attempted partition succeeded
    PARTIAL = auto()  # at least one succeeded, at least one failed
    FAILED = auto()  # nothing succeeded
    CANCELLED = auto()  # operator selected nothing; no changes made


@dataclass
class PartitionResult:
    """Outcome of archiving or restoring a single partition."""

    partition: PartitionId
    success: bool
    message: str = ""
    archive_path: Path | None = None
    log_path: Path | None = None
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "partition": self.partition.device_path,
            "success": self.success,
            "skipped": self.skipped,
            "message": self.message,
            "archive_path": str(self.archive_path) if self.archive_path else None,
            "log_path": str(self.log_path) if self.log_path else None,
        }


@dataclass
class RunReport:
    """Per-partition results of one backup or restore run."""

    operation: str
    target: str
    results: list[PartitionResult] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: datetime | None = None

    @property
    def succeeded(self) -> list[PartitionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[PartitionResult]:
        return [r for r in self.results if not r.success]

    @property
    def all_succeeded(self) -> bool:
        return bool(self.results) and not self.failed

    @property
    def any_succeeded(self) -> bool:
        return bool(self.succeeded)

    @property
    def status(self) -> RunStatus:
        if self.cancelled:
            return RunStatus.CANCELLED
        if self.all_succeeded:
            return RunStatus.COMPLETED
        if self.any_succeeded:
            return RunStatus.PARTIAL
        return RunStatus.FAILED

    def add(self, result: PartitionResult) -> PartitionResult:
        self.results.append(result)
        return result

    def finish(self) -> None:
        self.ended_at = datetime.now()

    def summary(self) -> str:
        """Human-readable one-line outcome."""
        if self.status is RunStatus.CANCELLED:
            return f"{self.operation.capitalize()} cancelled: no changes made to {self.target}"
        total = len(self.results)
        return (
            f"{self.operation.capitalize()} {self.status.name.lower()}: "
            f"{len(self.succeeded)} succeeded, {len(self.failed)} failed "
            f"of {total} partition(s) on {self.target}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "target": self.target,
            "status": self.status.name,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "results": [r.to_dict() for r in self.results],
            "summary": {
                "succeeded": len(self.succeeded),
                "failed": len(self.failed),
            },
        }


@dataclass
class BackupReport(RunReport):
    """Result of a backup run, including the backup-set it produced."""

    backup_set: BackupSet | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["backup_set"] = self.backup_set.to_dict() if self.backup_set else None
        return data


@dataclass
class RestoreReport(RunReport):
    """Result of a restore run."""

    backup_set: BackupSet | None = None
    table_restored: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["backup_set"] = self.backup_set.to_dict() if self.backup_set else None
        data["table_restored"] = self.table_restored
        return data
