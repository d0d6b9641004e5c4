"""
Backup-set catalog.

Lists, selects and deletes the backup-sets stored under a backup root.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from fsbackup.core.errors import BackupSetNotFound, CorruptBackupSet, EmptyBackupSet
from fsbackup.core.logging import get_logger
from fsbackup.core.models import (
    ARCHIVE_EXTENSION,
    PT_TYPE_FILE,
    BackupSet,
    BackupSetEntry,
    PartitionTableKind,
)
from fsbackup.core.prompts import Cancel, Choice, Select

if TYPE_CHECKING:
    from fsbackup.core.config import BackupConfig
    from fsbackup.core.prompts import Prompter

logger = get_logger(__name__)


def _natural_key(path: Path) -> list[object]:
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", path.name)]


class BackupCatalog:
    """Enumerates and manages backup-set directories."""

    def __init__(self, config: BackupConfig, prompter: Prompter) -> None:
        self.config = config
        self.prompter = prompter

    def read_comment(self, set_path: Path) -> str:
        """Annotation of a backup-set, or the no-description sentinel."""
        annotation = set_path / self.config.annotation_filename
        if not annotation.is_file():
            return self.config.no_description
        return annotation.read_text(errors="replace").strip()

    def list(self, root: Path) -> list[BackupSetEntry]:
        """All backup-sets under ``root`` in ascending name order."""
        if not root.is_dir():
            return []
        return [
            BackupSetEntry(name=path.name, comment=self.read_comment(path), path=path)
            for path in sorted(root.iterdir(), key=lambda p: p.name)
            if path.is_dir()
        ]

    def get(self, root: Path, name: str) -> BackupSetEntry:
        """Look up a backup-set by name."""
        path = root / name
        if not name or "/" in name or name in (".", "..") or not path.is_dir():
            raise BackupSetNotFound(name, root)
        return BackupSetEntry(name=name, comment=self.read_comment(path), path=path)

    def select(self, root: Path, name: str | None = None) -> Choice[BackupSetEntry]:
        """
        Pick a backup-set.

        An explicit name takes precedence and must exist. Without one the
        operator chooses from a numbered menu; an empty catalog or choosing
        Cancel yields ``Cancel()``.
        """
        if name:
            return Select(self.get(root, name))

        entries = self.list(root)
        if not entries:
            self.prompter.notify(f"There are no backups in {root}", "warning")
            return Cancel()

        self.prompter.notify("Listing backup files...")
        return self.prompter.choose(
            f"Backup-sets in {root}:",
            [(str(entry), entry) for entry in entries],
        )

    def delete(self, root: Path, name: str) -> bool:
        """Delete a backup-set after a second, explicit confirmation."""
        entry = self.get(root, name)
        self.prompter.notify(
            f"This will completely DELETE the backup-set '{entry.name}' and is not recoverable.",
            "warning",
        )
        if not self.prompter.confirm("Are you sure you want to proceed?", default=False):
            self.prompter.notify("Operation cancelled.")
            logger.info("Deletion declined", backup_set=entry.name)
            return False

        shutil.rmtree(entry.path)
        logger.warning("Backup-set deleted", backup_set=entry.name, path=str(entry.path))
        self.prompter.notify(f"'{entry.name}' has been deleted.", "success")
        return True

    def load(self, path: Path) -> BackupSet:
        """
        Open a backup-set for restoring.

        The partition-table marker is validated before archives are looked
        at: an unrecognized marker is corruption, no archives is emptiness.
        """
        if not path.is_dir():
            raise CorruptBackupSet(path, "not a directory")

        marker_file = path / PT_TYPE_FILE
        if not marker_file.is_file():
            raise CorruptBackupSet(path, f"{PT_TYPE_FILE} not found")
        marker = marker_file.read_text(errors="replace")
        kind = PartitionTableKind.from_marker(marker)
        if kind is None:
            raise CorruptBackupSet(
                path, f"invalid partition table type in {PT_TYPE_FILE}: {marker.strip()!r}"
            )

        archives = {
            archive.name[: -len(ARCHIVE_EXTENSION)]: archive
            for archive in sorted(path.glob(f"*{ARCHIVE_EXTENSION}"), key=_natural_key)
            if archive.is_file()
        }
        if not archives:
            raise EmptyBackupSet(path)

        return BackupSet(
            name=path.name,
            path=path,
            table_kind=kind,
            comment=self.read_comment(path),
            archives=archives,
        )
