"""
Backup destination mounting.

Mounts the backup device at the configured mount point for the duration of
one invocation and guarantees it is released again.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fsbackup.core.errors import MountFailed, PathCreateFailed
from fsbackup.core.logging import get_logger

if TYPE_CHECKING:
    from fsbackup.core.config import BackupConfig
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)


class MountManager:
    """Mounts a backup device and ensures the backup-set root exists."""

    def __init__(self, backend: PlatformBackend, config: BackupConfig) -> None:
        self.backend = backend
        self.config = config

    def mount(self, device: str, mount_point: Path | None = None) -> Path:
        """Mount ``device`` and return the backup-set root beneath it."""
        mount_point = mount_point or self.config.mount_point

        try:
            mount_point.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PathCreateFailed(mount_point, e.strerror or str(e)) from e

        result = self.backend.mount(device, mount_point)
        if not result.success:
            raise MountFailed(device, mount_point, result.error_text)
        logger.info("Mounted backup device", device=device, mount_point=str(mount_point))

        backup_root = mount_point / self.config.backup_dir
        try:
            backup_root.mkdir(exist_ok=True)
        except OSError as e:
            self.backend.unmount(mount_point)
            raise PathCreateFailed(backup_root, e.strerror or str(e)) from e

        return backup_root

    def unmount(self, mount_point: Path | None = None) -> bool:
        """
        Unmount the backup device if it is mounted.

        A missing backup-set root means nothing of ours is mounted there.
        Failures are logged, never raised, so they cannot mask the outcome
        of the operation being cleaned up after.
        """
        mount_point = mount_point or self.config.mount_point
        if not (mount_point / self.config.backup_dir).is_dir():
            return True

        result = self.backend.unmount(mount_point)
        if not result.success:
            logger.error(
                "Failed to unmount backup device",
                mount_point=str(mount_point),
                error=result.error_text,
            )
            return False

        logger.info("Unmounted backup device", mount_point=str(mount_point))
        return True

    @contextmanager
    def mounted(self, device: str, mount_point: Path | None = None) -> Iterator[Path]:
        """Mount for the duration of the block; always unmount afterwards."""
        mount_point = mount_point or self.config.mount_point
        backup_root = self.mount(device, mount_point)
        try:
            yield backup_root
        finally:
            self.unmount(mount_point)
