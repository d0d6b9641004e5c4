"""
fsbackup configuration management.

Provides a single validated configuration value object, passed explicitly
to every component.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".fsbackup" / "config.json"

SUPPORTED_FILESYSTEMS = [
    "ext2",
    "ext3",
    "ext4",
    "xfs",
    "btrfs",
    "ntfs",
    "vfat",
    "fat16",
    "fat32",
    "reiserfs",
]


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_enabled: bool = True
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: Path.home() / ".fsbackup" / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class BackupConfig(BaseModel):
    """Where and how backup-sets are stored on the backup device."""

    mount_point: Path = Path("/mnt/backup")
    backup_dir: str = "fs"
    annotation_filename: str = "comment.txt"
    name_format: str = "%Y%m%d_%H%M%S"
    no_description: str = "<no desc>"
    supported_filesystems: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_FILESYSTEMS)
    )

    @field_validator("backup_dir", "annotation_filename")
    @classmethod
    def plain_name(cls, v: str) -> str:
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"must be a plain file name: {v!r}")
        return v

    @property
    def backup_root(self) -> Path:
        """Directory holding the backup-sets once the device is mounted."""
        return self.mount_point / self.backup_dir


class ArchiverConfig(BaseModel):
    """Options handed to the filesystem archiver."""

    compression_level: int = Field(default=3, ge=0, le=22)
    threads: int | None = Field(default=None, ge=1)
    allow_live_backup: bool = True
    verbose: bool = True


class DeviceConfig(BaseModel):
    """Device resolution strategy."""

    match_identifiers: bool = True


class SafetyConfig(BaseModel):
    """Configuration for safety features."""

    preflight_checks_enabled: bool = True
    require_root: bool = True


class FsBackupConfig(BaseModel):
    """Main fsbackup configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    archiver: ArchiverConfig = Field(default_factory=ArchiverConfig)
    devices: DeviceConfig = Field(default_factory=DeviceConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    session_directory: Path = Field(
        default_factory=lambda: Path.home() / ".fsbackup" / "sessions"
    )

    @field_validator("session_directory", mode="before")
    @classmethod
    def expand_session_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @classmethod
    def load(cls, config_path: Path | None = None) -> FsBackupConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create the local log and session directories."""
        self.logging.log_directory.mkdir(parents=True, exist_ok=True)
        self.session_directory.mkdir(parents=True, exist_ok=True)

    def get_session_file(self) -> Path:
        """Get path for a new session log file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.session_directory / f"session_{timestamp}.json"

    def get_archiver_log(self, set_name: str, suffix: str, action: str) -> Path:
        """Path retaining the archiver output for one partition."""
        return self.logging.log_directory / f"fsarchiver_{action}_{set_name}_{suffix}.log"


def get_default_config() -> FsBackupConfig:
    """Get the default configuration."""
    return FsBackupConfig()


def load_config(config_path: Path | None = None) -> FsBackupConfig:
    """Load or create configuration."""
    config = FsBackupConfig.load(config_path)
    config.ensure_directories()
    return config
