"""
Device resolution.

Maps an operator-supplied device token to a block-device path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fsbackup.core.errors import DeviceNotFound, NotABlockDevice
from fsbackup.core.logging import get_logger

if TYPE_CHECKING:
    from fsbackup.core.config import DeviceConfig
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)

IDENTIFIER_FIELDS = ("name", "uuid", "partuuid", "label")


class DeviceResolver:
    """Resolves paths, names, UUIDs, partition UUIDs and labels to devices."""

    def __init__(self, backend: PlatformBackend, config: DeviceConfig) -> None:
        self.backend = backend
        self.config = config

    def resolve(self, token: str) -> str:
        """
        Resolve ``token`` to a validated, canonical block-device path.

        Existing absolute paths are taken as given and then canonicalised, so
        ``/dev/disk/by-id/...`` links yield the kernel name lsblk reports. A
        missing ``/dev/<identifier>`` and any other token are matched against
        the name, UUID, PARTUUID and label of every enumerated block device.
        """
        token = token.strip()
        if not token:
            raise DeviceNotFound(token)

        if token.startswith("/") and (
            self.backend.path_exists(token) or not token.startswith("/dev/")
        ):
            path = token
        elif self.config.match_identifiers:
            path = self._match_identifier(token)
        else:
            path = f"/dev/{token.removeprefix('/dev/')}"

        if not self.backend.path_exists(path):
            raise DeviceNotFound(token)
        if not self.backend.is_block_device(path):
            raise NotABlockDevice(path)

        canonical = self.backend.canonical_path(path)
        logger.debug("Resolved device", token=token, path=canonical)
        return canonical

    def _match_identifier(self, token: str) -> str:
        identifier = token.removeprefix("/dev/")
        for block in self.backend.list_block_devices():
            path = block.get("path") or f"/dev/{block.get('name')}"
            values = {str(block.get(key) or "") for key in IDENTIFIER_FIELDS}
            values.add(path.removeprefix("/dev/"))
            if identifier in values:
                return path
        raise DeviceNotFound(token)
