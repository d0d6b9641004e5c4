"""
Tests for fsbackup.core.discovery module.
"""

from unittest.mock import Mock

import pytest

from conftest import ScriptedPrompter
from fsbackup.core.config import FsBackupConfig
from fsbackup.core.discovery import PartitionDiscovery
from fsbackup.core.errors import NoEligiblePartitions

DISK = "/dev/sda"
PARTITIONS = [
    {"path": "/dev/sda1", "fstype": "ext4"},
    {"path": "/dev/sda2", "fstype": "swap"},
    {"path": "/dev/sda3", "fstype": "ntfs"},
]


@pytest.fixture
def discovery(
    sample_config: FsBackupConfig, mock_platform_backend: Mock, prompter: ScriptedPrompter
) -> PartitionDiscovery:
    mock_platform_backend.list_partitions.return_value = PARTITIONS
    mock_platform_backend.get_root_source.return_value = "/dev/sda1"
    return PartitionDiscovery(mock_platform_backend, sample_config.backup, prompter)


class TestDiscover:
    def test_skips_active_root_and_unsupported(
        self, discovery: PartitionDiscovery, prompter: ScriptedPrompter
    ) -> None:
        candidates = discovery.discover(DISK)

        assert [c.device_path for c in candidates] == ["/dev/sda3"]
        assert candidates[0].partition.suffix == "3"
        assert candidates[0].fstype == "ntfs"
        assert "use --include-active" in prompter.notice_text()
        # Unsupported filesystems are left out without a notice
        assert "sda2" not in prompter.notice_text()

    def test_include_active(self, discovery: PartitionDiscovery) -> None:
        candidates = discovery.discover(DISK, include_active=True)

        assert [c.device_path for c in candidates] == ["/dev/sda1", "/dev/sda3"]
        assert candidates[0].is_active_root is True
        assert candidates[1].is_active_root is False

    def test_fstype_fallback_probe(
        self, discovery: PartitionDiscovery, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.list_partitions.return_value = [{"path": "/dev/sda4", "fstype": None}]
        mock_platform_backend.get_fstype.return_value = "XFS"

        candidates = discovery.discover(DISK)

        mock_platform_backend.get_fstype.assert_called_once_with("/dev/sda4")
        assert candidates[0].fstype == "xfs"

    def test_undetectable_fstype_is_excluded(
        self, discovery: PartitionDiscovery, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.list_partitions.return_value = [
            {"path": "/dev/sda4", "fstype": None},
            {"path": "/dev/sda5", "fstype": "vfat"},
        ]
        candidates = discovery.discover(DISK)
        assert [c.device_path for c in candidates] == ["/dev/sda5"]

    def test_nvme_suffix(self, discovery: PartitionDiscovery, mock_platform_backend: Mock) -> None:
        mock_platform_backend.list_partitions.return_value = [
            {"path": "/dev/nvme0n1p2", "fstype": "ext4"}
        ]
        candidates = discovery.discover("/dev/nvme0n1")
        assert candidates[0].partition.suffix == "p2"

    def test_nothing_eligible(
        self, discovery: PartitionDiscovery, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.list_partitions.return_value = [
            {"path": "/dev/sda1", "fstype": "ext4"},
            {"path": "/dev/sda2", "fstype": "swap"},
        ]
        with pytest.raises(NoEligiblePartitions):
            discovery.discover(DISK)

    def test_no_partitions(self, discovery: PartitionDiscovery, mock_platform_backend: Mock) -> None:
        mock_platform_backend.list_partitions.return_value = []
        with pytest.raises(NoEligiblePartitions):
            discovery.discover(DISK)


class TestSelect:
    def test_only_affirmative_answers(
        self, discovery: PartitionDiscovery, prompter: ScriptedPrompter
    ) -> None:
        candidates = discovery.discover(DISK, include_active=True)
        prompter.confirms = [False, True]

        selected = discovery.select(candidates)

        assert [c.device_path for c in selected] == ["/dev/sda3"]
        assert candidates[0].included is False
        assert candidates[1].included is True
        assert prompter.questions == [
            "Backup partition /dev/sda1 (ext4)?",
            "Backup partition /dev/sda3 (ntfs)?",
        ]

    def test_default_is_no(self, discovery: PartitionDiscovery) -> None:
        candidates = discovery.discover(DISK)
        assert discovery.select(candidates) == []
