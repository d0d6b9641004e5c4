"""
Backup engine.

Creates a timestamped backup-set: a partition-table snapshot first, then one
archive per selected partition, then the size and comment annotation.
"""

from __future__ import annotations

import socket
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import humanize

from fsbackup.core.errors import PartitionTableError, PathCreateFailed
from fsbackup.core.logging import OperationLogger, get_logger
from fsbackup.core.models import (
    PT_TYPE_FILE,
    BackupReport,
    BackupSet,
    PartitionCandidate,
    PartitionResult,
    PartitionTableKind,
)

if TYPE_CHECKING:
    from fsbackup.core.config import FsBackupConfig
    from fsbackup.core.prompts import Prompter
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)


def short_hostname() -> str:
    return socket.gethostname().split(".")[0]


class BackupEngine:
    """Runs one backup of selected partitions into a new backup-set."""

    def __init__(
        self,
        backend: PlatformBackend,
        config: FsBackupConfig,
        prompter: Prompter,
    ) -> None:
        self.backend = backend
        self.config = config
        self.prompter = prompter

    def new_set_name(self, now: datetime | None = None) -> str:
        now = now or datetime.now()
        return f"{now.strftime(self.config.backup.name_format)}_{short_hostname()}"

    def create_set(self, root: Path, name: str | None = None) -> BackupSet:
        """
        Create the backup-set directory.

        Names are unique at one-second granularity; an existing directory is
        an error rather than being reused.
        """
        name = name or self.new_set_name()
        path = root / name
        try:
            path.mkdir()
        except OSError as e:
            raise PathCreateFailed(path, e.strerror or str(e)) from e
        logger.info("Created backup-set", backup_set=name, path=str(path))
        return BackupSet(name=name, path=path)

    def save_partition_table(self, disk: str, backup_set: BackupSet) -> PartitionTableKind:
        """Snapshot the disk's partition table into the backup-set."""
        readable, label = self.backend.get_label_type(disk)
        if not readable:
            raise PartitionTableError(disk, "unable to read the partition table")

        kind = PartitionTableKind.from_label(label)
        dump_path = backup_set.path / kind.dump_filename

        if kind is PartitionTableKind.GPT:
            result = self.backend.save_gpt_table(disk, dump_path)
            if not result.success:
                raise PartitionTableError(disk, f"sgdisk backup failed: {result.error_text}")
        else:
            result = self.backend.dump_partition_table(disk)
            if not result.success:
                raise PartitionTableError(disk, f"sfdisk dump failed: {result.error_text}")
            dump_path.write_text(result.stdout)

        (backup_set.path / PT_TYPE_FILE).write_text(f"{kind.value}\n")
        backup_set.table_kind = kind
        logger.info("Saved partition table", disk=disk, kind=kind.value, dump=str(dump_path))
        return kind

    def archive_partition(
        self,
        candidate: PartitionCandidate,
        backup_set: BackupSet,
        active_override: bool = False,
    ) -> PartitionResult:
        """Archive one partition; failures are returned, never raised."""
        partition = candidate.partition
        device = partition.device_path

        if candidate.is_active_root and not active_override:
            message = f"{device} is the active root partition; use --include-active to back up"
            self.prompter.notify(f"Error: {message}", "error")
            return PartitionResult(partition=partition, success=False, message=message, skipped=True)

        mount = self.backend.get_mounts().get(device)
        mounted_rw = mount is not None and mount.read_write
        if mount is not None and mounted_rw:
            self.prompter.notify(
                f"Warning: {device} is mounted RW at {mount.mountpoint} "
                "(live backup may have minor inconsistencies)",
                "warning",
            )
            self.prompter.notify(
                f"Consider remounting read-only with: mount -o remount,ro {mount.mountpoint}",
                "warning",
            )
        elif mount is not None:
            self.prompter.notify(f"Note: {device} is mounted read-only at {mount.mountpoint}", "note")

        archive = backup_set.archive_path(partition.suffix)
        log_path = self.config.get_archiver_log(backup_set.name, partition.suffix, "savefs")
        archiver = self.config.archiver

        self.prompter.notify(f"Backing up {device} to {archive.name}...")
        result = self.backend.archive_filesystem(
            device,
            archive,
            threads=archiver.threads or self.backend.cpu_count(),
            compression_level=archiver.compression_level,
            allow_live=mounted_rw and archiver.allow_live_backup,
            verbose=archiver.verbose,
        )
        write_command_log(log_path, result.stdout, result.stderr)

        if not result.success:
            message = f"Failed to back up {device}: {result.error_text}"
            logger.error("Archiver failed", device=device, log=str(log_path), error=result.error_text)
            self.prompter.notify(f"Error: {message} (log: {log_path})", "error")
            return PartitionResult(
                partition=partition, success=False, message=message, log_path=log_path
            )

        backup_set.archives[partition.suffix] = archive
        self.prompter.notify(f"{device} archived; log written to '{log_path}'", "note")
        return PartitionResult(
            partition=partition,
            success=True,
            message=f"Archived {device}",
            archive_path=archive,
            log_path=log_path,
        )

    def write_annotation(self, backup_set: BackupSet, comment: str) -> str:
        """Write ``(<size>) <comment>`` into the backup-set."""
        size = humanize.naturalsize(self.backend.directory_size(backup_set.path), gnu=True)
        annotation = f"({size}) {comment}"
        (backup_set.path / self.config.backup.annotation_filename).write_text(f"{annotation}\n")
        backup_set.comment = annotation
        return annotation

    def run(
        self,
        disk: str,
        root: Path,
        selected: list[PartitionCandidate],
        comment: str = "",
        active_override: bool = False,
    ) -> BackupReport:
        """Back up ``selected`` partitions of ``disk`` into a new set under ``root``."""
        with OperationLogger("backup", logger, disk=disk, root=str(root)) as op:
            backup_set = self.create_set(root)
            report = BackupReport(operation="backup", target=disk, backup_set=backup_set)
            op.update(backup_set=backup_set.name)

            self.prompter.notify(f"Saving partition table to {backup_set.path}/...")
            self.save_partition_table(disk, backup_set)

            self.prompter.notify(f"Backing up selected partitions to {backup_set.path}/ ...")
            for candidate in selected:
                report.add(self.archive_partition(candidate, backup_set, active_override))

            self.write_annotation(backup_set, comment)
            report.finish()
            op.update(succeeded=len(report.succeeded), failed=len(report.failed))

        return report


def write_command_log(path: Path, stdout: str, stderr: str) -> None:
    """Retain a collaborator's output; an unwritable log is not fatal."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text((stdout or "") + (stderr or ""))
    except OSError as e:
        logger.warning("Unable to write command log", path=str(path), error=str(e))
