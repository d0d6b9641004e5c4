"""
Restore engine.

Rebuilds a disk from a backup-set: validate the set, agree on partitions
with the operator, replay the partition table, then restore filesystems.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fsbackup.core.backup import write_command_log
from fsbackup.core.errors import CorruptBackupSet, NoEligiblePartitions, PartitionTableError
from fsbackup.core.logging import OperationLogger, get_logger
from fsbackup.core.models import (
    BackupSet,
    PartitionId,
    PartitionResult,
    PartitionTableKind,
    RestoreReport,
)
from fsbackup.core.prompts import Cancel

if TYPE_CHECKING:
    from pathlib import Path

    from fsbackup.core.catalog import BackupCatalog
    from fsbackup.core.config import FsBackupConfig
    from fsbackup.core.prompts import Prompter
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)


class RestoreEngine:
    """Restores a backup-set onto a target disk."""

    def __init__(
        self,
        backend: PlatformBackend,
        config: FsBackupConfig,
        prompter: Prompter,
        catalog: BackupCatalog,
    ) -> None:
        self.backend = backend
        self.config = config
        self.prompter = prompter
        self.catalog = catalog

    def restorable_partitions(
        self,
        backup_set: BackupSet,
        target_disk: str,
        root_source: str | None,
        include_active: bool = False,
    ) -> list[PartitionId]:
        """Map archives onto the target disk, dropping the active root unless allowed."""
        partitions: list[PartitionId] = []
        for suffix in backup_set.archives:
            target = PartitionId(disk_path=target_disk, suffix=suffix).on_disk(target_disk)
            if root_source is not None and target.device_path == root_source and not include_active:
                self.prompter.notify(
                    f"Note: Skipping {target.device_path} "
                    "(active root partition; use --include-active to restore)",
                    "note",
                )
                continue
            partitions.append(target)
        return partitions

    def replay_partition_table(self, backup_set: BackupSet, target_disk: str) -> None:
        """Write the saved partition table to the target and re-probe it."""
        kind = backup_set.table_kind
        dump = backup_set.table_dump_path
        if kind is None or dump is None or not dump.is_file():
            raise CorruptBackupSet(
                backup_set.path,
                f"{kind.dump_filename if kind else 'partition table dump'} not found",
            )

        self.prompter.notify(f"Restoring partition table to {target_disk} ...")
        if kind is PartitionTableKind.GPT:
            result = self.backend.load_gpt_table(dump, target_disk)
        else:
            result = self.backend.load_partition_table(dump, target_disk)
        if not result.success:
            raise PartitionTableError(target_disk, f"table replay failed: {result.error_text}")
        self.prompter.notify("Partition table restoration complete.")

        probe = self.backend.reread_partitions(target_disk)
        if not probe.success:
            logger.warning("Kernel re-read of partitions failed", disk=target_disk, error=probe.error_text)
            self.prompter.notify(
                f"Warning: partprobe {target_disk} failed: {probe.error_text}", "warning"
            )

    def restore_partition(
        self,
        backup_set: BackupSet,
        partition: PartitionId,
        root_source: str | None,
    ) -> PartitionResult:
        """Restore one partition; failures are returned, never raised."""
        device = partition.device_path
        archive = backup_set.archive_for(partition)

        if not archive.is_file():
            return self._skip(partition, f"{archive} not found, skipping {device}")
        if not self.backend.is_block_device(device):
            return self._skip(partition, f"{device} not a block device, skipping")

        mount = self.backend.get_mounts().get(device)
        if mount is not None:
            self.prompter.notify(f"Error: {device} is mounted at {mount.mountpoint}.", "error")
            if not self.prompter.confirm("Proceed and unmount it first?", default=False):
                return self._skip(partition, f"Skipping restoration of {device}")
            unmounted = self.backend.unmount(mount.mountpoint)
            if not unmounted.success:
                return self._skip(
                    partition, f"Failed to unmount {mount.mountpoint}, skipping {device}"
                )

        if root_source is not None and device == root_source:
            self.prompter.notify(
                f"Warning: Restoring active root partition {device} may cause system instability",
                "warning",
            )

        log_path = self.config.get_archiver_log(backup_set.name, partition.suffix, "restfs")
        self.prompter.notify(f"Restoring {archive} -> {device}")
        result = self.backend.restore_filesystem(archive, device)
        write_command_log(log_path, result.stdout, result.stderr)

        if not result.success:
            message = f"Failed to restore {device}: {result.error_text}"
            logger.error("Archiver restore failed", device=device, log=str(log_path))
            self.prompter.notify(f"Error: {message} (log: {log_path})", "error")
            return PartitionResult(
                partition=partition,
                success=False,
                message=message,
                archive_path=archive,
                log_path=log_path,
            )

        return PartitionResult(
            partition=partition,
            success=True,
            message=f"Restored {device}",
            archive_path=archive,
            log_path=log_path,
        )

    def _skip(self, partition: PartitionId, message: str) -> PartitionResult:
        self.prompter.notify(f"Error: {message}", "error")
        logger.warning("Partition skipped", partition=partition.device_path, reason=message)
        return PartitionResult(partition=partition, success=False, message=message, skipped=True)

    def run(
        self,
        backup_set_path: Path,
        target_disk: str,
        include_active: bool = False,
    ) -> RestoreReport:
        """Restore the backup-set at ``backup_set_path`` onto ``target_disk``."""
        with OperationLogger(
            "restore", logger, backup_set=str(backup_set_path), target=target_disk
        ) as op:
            backup_set = self.catalog.load(backup_set_path)
            report = RestoreReport(operation="restore", target=target_disk, backup_set=backup_set)

            root_source = self.backend.get_root_source()
            partitions = self.restorable_partitions(
                backup_set, target_disk, root_source, include_active
            )
            if not partitions:
                raise NoEligiblePartitions(
                    target_disk, "no valid partitions available for restoration"
                )

            choice = self.prompter.checklist(
                "Select partitions to restore:",
                [(p.device_path, p) for p in partitions],
            )
            if isinstance(choice, Cancel) or not choice.value:
                self.prompter.notify("Cancelled: No restoration performed", "warning")
                report.cancelled = True
                report.finish()
                op.update(cancelled=True)
                return report

            self.replay_partition_table(backup_set, target_disk)
            report.table_restored = True

            for partition in choice.value:
                report.add(self.restore_partition(backup_set, partition, root_source))

            report.finish()
            op.update(succeeded=len(report.succeeded), failed=len(report.failed))

        return report
