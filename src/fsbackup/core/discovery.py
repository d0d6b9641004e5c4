"""
Partition discovery and selection.

Finds the partitions of a source disk that can be archived and lets the
operator approve a subset of them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fsbackup.core.errors import NoEligiblePartitions
from fsbackup.core.logging import get_logger
from fsbackup.core.models import PartitionCandidate, PartitionId

if TYPE_CHECKING:
    from fsbackup.core.config import BackupConfig
    from fsbackup.core.prompts import Prompter
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)


class PartitionDiscovery:
    """Discovers eligible partitions on a disk and collects operator approval."""

    def __init__(
        self,
        backend: PlatformBackend,
        config: BackupConfig,
        prompter: Prompter,
    ) -> None:
        self.backend = backend
        self.config = config
        self.prompter = prompter

    def is_supported(self, fstype: str | None) -> bool:
        return bool(fstype) and fstype.lower() in self.config.supported_filesystems

    def discover(self, disk: str, include_active: bool = False) -> list[PartitionCandidate]:
        """
        Enumerate archivable partitions of ``disk``.

        Partitions with an unsupported or undetectable filesystem are left
        out silently. The active root partition is left out with a notice
        unless ``include_active`` is set.
        """
        root_source = self.backend.get_root_source()
        candidates: list[PartitionCandidate] = []

        for entry in self.backend.list_partitions(disk):
            device_path = entry["path"]
            fstype = entry.get("fstype") or self.backend.get_fstype(device_path)
            if not self.is_supported(fstype):
                logger.debug("Skipping unsupported filesystem", device=device_path, fstype=fstype)
                continue

            is_active = root_source is not None and device_path == root_source
            if is_active and not include_active:
                self.prompter.notify(
                    f"Note: Skipping {device_path} "
                    "(active root partition; use --include-active to back up)",
                    "note",
                )
                continue

            candidates.append(
                PartitionCandidate(
                    partition=PartitionId.from_device(disk, device_path),
                    fstype=fstype.lower(),
                    is_active_root=is_active,
                )
            )

        logger.info(
            "Partition discovery finished",
            disk=disk,
            candidates=[c.device_path for c in candidates],
        )

        if not candidates:
            raise NoEligiblePartitions(disk, "no supported filesystems found")
        return candidates

    def select(self, candidates: list[PartitionCandidate]) -> list[PartitionCandidate]:
        """Ask once per candidate; keep only the ones approved."""
        selected: list[PartitionCandidate] = []
        for candidate in candidates:
            candidate.included = self.prompter.confirm(
                f"Backup partition {candidate.device_path} ({candidate.fstype})?",
                default=False,
            )
            if candidate.included:
                selected.append(candidate)
        return selected
