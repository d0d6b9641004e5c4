"""
Tests for fsbackup.core.models module.
"""

from datetime import datetime
from pathlib import Path

import pytest

from fsbackup.core.models import (
    BackupReport,
    BackupSet,
    BackupSetEntry,
    MountInfo,
    PartitionId,
    PartitionResult,
    PartitionTableKind,
    RestoreReport,
    RunReport,
    RunStatus,
)


class TestPartitionTableKind:
    def test_from_label(self) -> None:
        assert PartitionTableKind.from_label("gpt") is PartitionTableKind.GPT
        assert PartitionTableKind.from_label("GPT") is PartitionTableKind.GPT
        assert PartitionTableKind.from_label("dos") is PartitionTableKind.DOS

    def test_unrecognized_label_takes_legacy_path(self) -> None:
        assert PartitionTableKind.from_label(None) is PartitionTableKind.DOS
        assert PartitionTableKind.from_label("sun") is PartitionTableKind.DOS

    def test_from_marker(self) -> None:
        assert PartitionTableKind.from_marker("gpt\n") is PartitionTableKind.GPT
        assert PartitionTableKind.from_marker("dos") is PartitionTableKind.DOS
        assert PartitionTableKind.from_marker("btrfs") is None
        assert PartitionTableKind.from_marker("") is None

    def test_dump_filename(self) -> None:
        assert PartitionTableKind.GPT.dump_filename == "disk-pt.gpt"
        assert PartitionTableKind.DOS.dump_filename == "disk-pt.sf"


class TestPartitionId:
    """Tests for PartitionId."""

    def test_from_device_sd(self) -> None:
        partition = PartitionId.from_device("/dev/sda", "/dev/sda3")
        assert partition.suffix == "3"
        assert partition.number == "3"
        assert partition.device_path == "/dev/sda3"
        assert str(partition) == "/dev/sda3"

    def test_from_device_nvme(self) -> None:
        partition = PartitionId.from_device("/dev/nvme0n1", "/dev/nvme0n1p2")
        assert partition.suffix == "p2"
        assert partition.number == "2"

    def test_from_device_rejects_other_disk(self) -> None:
        with pytest.raises(ValueError):
            PartitionId.from_device("/dev/sda", "/dev/sdb1")
        with pytest.raises(ValueError):
            PartitionId.from_device("/dev/sda", "/dev/sda")

    @pytest.mark.parametrize(
        "source,disk,expected",
        [
            (PartitionId("/dev/sda", "1"), "/dev/sdb", "/dev/sdb1"),
            (PartitionId("/dev/sda", "1"), "/dev/nvme0n1", "/dev/nvme0n1p1"),
            (PartitionId("/dev/nvme0n1", "p3"), "/dev/sdc", "/dev/sdc3"),
            (PartitionId("/dev/mmcblk0", "p2"), "/dev/mmcblk1", "/dev/mmcblk1p2"),
        ],
    )
    def test_on_disk_retargets(self, source: PartitionId, disk: str, expected: str) -> None:
        assert source.on_disk(disk).device_path == expected

    def test_hashable(self) -> None:
        assert len({PartitionId("/dev/sda", "1"), PartitionId("/dev/sda", "1")}) == 1


class TestMountInfo:
    def test_read_write(self) -> None:
        assert MountInfo("/dev/sda1", "/", options=["rw", "relatime"]).read_write is True
        assert MountInfo("/dev/sda1", "/boot", options=["ro"]).read_write is False


class TestBackupSet:
    """Tests for BackupSet."""

    def test_table_dump_path(self, temp_dir: Path) -> None:
        backup_set = BackupSet(name="x", path=temp_dir)
        assert backup_set.table_dump_path is None
        backup_set.table_kind = PartitionTableKind.DOS
        assert backup_set.table_dump_path == temp_dir / "disk-pt.sf"

    def test_created_at_from_name(self, temp_dir: Path) -> None:
        backup_set = BackupSet(name="20240315_101500_host", path=temp_dir)
        assert backup_set.created_at == datetime(2024, 3, 15, 10, 15, 0)
        assert BackupSet(name="manual", path=temp_dir).created_at is None

    def test_archive_for_matches_partition_number(self, temp_dir: Path) -> None:
        backup_set = BackupSet(
            name="x",
            path=temp_dir,
            archives={"1": temp_dir / "1.fsa", "3": temp_dir / "3.fsa"},
        )
        assert backup_set.archive_for(PartitionId("/dev/nvme0n1", "p3")) == temp_dir / "3.fsa"
        assert backup_set.archive_for(PartitionId("/dev/sdb", "2")) == temp_dir / "2.fsa"

    def test_entry_str(self, temp_dir: Path) -> None:
        entry = BackupSetEntry(name="set1", comment="(1.5M) weekly", path=temp_dir)
        assert str(entry) == "set1: (1.5M) weekly"


class TestRunReport:
    """Tests for RunReport and its status."""

    def _result(self, success: bool, suffix: str = "1") -> PartitionResult:
        return PartitionResult(partition=PartitionId("/dev/sda", suffix), success=success)

    def test_completed(self) -> None:
        report = RunReport(operation="backup", target="/dev/sda")
        report.add(self._result(True))
        assert report.status is RunStatus.COMPLETED
        assert report.all_succeeded is True

    def test_partial(self) -> None:
        report = RunReport(operation="backup", target="/dev/sda")
        report.add(self._result(True, "1"))
        report.add(self._result(False, "3"))
        assert report.status is RunStatus.PARTIAL
        assert "1 succeeded, 1 failed of 2 partition(s)" in report.summary()

    def test_failed(self) -> None:
        report = RunReport(operation="restore", target="/dev/sdb")
        report.add(self._result(False))
        assert report.status is RunStatus.FAILED

    def test_empty_report_is_not_success(self) -> None:
        report = RunReport(operation="backup", target="/dev/sda")
        assert report.all_succeeded is False
        assert report.status is RunStatus.FAILED

    def test_cancelled(self) -> None:
        report = RunReport(operation="restore", target="/dev/sdb", cancelled=True)
        assert report.status is RunStatus.CANCELLED
        assert report.summary() == "Restore cancelled: no changes made to /dev/sdb"

    def test_to_dict(self, temp_dir: Path) -> None:
        backup_set = BackupSet(name="set1", path=temp_dir, table_kind=PartitionTableKind.GPT)
        report = BackupReport(operation="backup", target="/dev/sda", backup_set=backup_set)
        report.add(self._result(True))
        report.finish()

        data = report.to_dict()
        assert data["status"] == "COMPLETED"
        assert data["backup_set"]["table_kind"] == "gpt"
        assert data["summary"] == {"succeeded": 1, "failed": 0}
        assert data["ended_at"] is not None

    def test_restore_report_to_dict(self) -> None:
        report = RestoreReport(operation="restore", target="/dev/sdb", table_restored=True)
        assert report.to_dict()["table_restored"] is True
