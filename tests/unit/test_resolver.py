"""
Tests for fsbackup.core.resolver module.
"""

from unittest.mock import Mock

import pytest

from fsbackup.core.config import DeviceConfig
from fsbackup.core.errors import DeviceNotFound, NotABlockDevice
from fsbackup.core.resolver import DeviceResolver

BLOCKS = [
    {"name": "/dev/sda", "path": "/dev/sda", "type": "disk", "uuid": None, "partuuid": None, "label": None},
    {
        "name": "/dev/sda1",
        "path": "/dev/sda1",
        "type": "part",
        "uuid": "1111-AAAA",
        "partuuid": "c0ffee-01",
        "label": "ROOT",
    },
    {
        "name": "/dev/sdb1",
        "path": "/dev/sdb1",
        "type": "part",
        "uuid": "2222-BBBB",
        "partuuid": "beef-01",
        "label": "BACKUP",
    },
]


@pytest.fixture
def resolver(mock_platform_backend: Mock) -> DeviceResolver:
    mock_platform_backend.list_block_devices.return_value = BLOCKS
    return DeviceResolver(mock_platform_backend, DeviceConfig())


class TestDeviceResolver:
    def test_absolute_path(self, resolver: DeviceResolver, mock_platform_backend: Mock) -> None:
        assert resolver.resolve("/dev/sda") == "/dev/sda"
        mock_platform_backend.list_block_devices.assert_not_called()

    @pytest.mark.parametrize(
        "token",
        ["BACKUP", "2222-BBBB", "beef-01", "sdb1", "/dev/sdb1"],
    )
    def test_identifier_matching(self, resolver: DeviceResolver, token: str) -> None:
        assert resolver.resolve(token) == "/dev/sdb1"

    def test_matching_is_exact(self, resolver: DeviceResolver) -> None:
        with pytest.raises(DeviceNotFound):
            resolver.resolve("BACK")

    def test_unknown_token(self, resolver: DeviceResolver) -> None:
        with pytest.raises(DeviceNotFound) as exc_info:
            resolver.resolve("NOPE")
        assert "NOPE" in str(exc_info.value)

    def test_empty_token(self, resolver: DeviceResolver) -> None:
        with pytest.raises(DeviceNotFound):
            resolver.resolve("  ")

    def test_missing_path(self, resolver: DeviceResolver, mock_platform_backend: Mock) -> None:
        mock_platform_backend.path_exists.return_value = False
        with pytest.raises(DeviceNotFound):
            resolver.resolve("/dev/sdz")

    def test_not_a_block_device(
        self, resolver: DeviceResolver, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.is_block_device.return_value = False
        with pytest.raises(NotABlockDevice):
            resolver.resolve("/tmp/disk.img")

    def test_symlinked_path_is_canonicalised(
        self, resolver: DeviceResolver, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.canonical_path.side_effect = {
            "/dev/disk/by-id/ata-X": "/dev/sda"
        }.get

        assert resolver.resolve("/dev/disk/by-id/ata-X") == "/dev/sda"
        mock_platform_backend.is_block_device.assert_called_once_with("/dev/disk/by-id/ata-X")

    def test_missing_dev_path_matches_identifier(
        self, resolver: DeviceResolver, mock_platform_backend: Mock
    ) -> None:
        mock_platform_backend.path_exists.side_effect = lambda path: path != "/dev/BACKUP"

        assert resolver.resolve("/dev/BACKUP") == "/dev/sdb1"
        mock_platform_backend.list_block_devices.assert_called_once()

    def test_path_only_strategy(self, mock_platform_backend: Mock) -> None:
        resolver = DeviceResolver(mock_platform_backend, DeviceConfig(match_identifiers=False))
        assert resolver.resolve("sdb1") == "/dev/sdb1"
        mock_platform_backend.list_block_devices.assert_not_called()
