"""
fsbackup Session Management.

Wires configuration, the platform backend and the operator prompter into
the components of one invocation, and keeps an audit report of its runs.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from fsbackup.core.backup import BackupEngine
from fsbackup.core.catalog import BackupCatalog
from fsbackup.core.config import FsBackupConfig, load_config
from fsbackup.core.discovery import PartitionDiscovery
from fsbackup.core.logging import SessionLogger, get_logger, setup_logging
from fsbackup.core.models import RunReport
from fsbackup.core.mount import MountManager
from fsbackup.core.prompts import ConsolePrompter, Prompter
from fsbackup.core.resolver import DeviceResolver
from fsbackup.core.restore import RestoreEngine
from fsbackup.core.safety import PreflightChecker
from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)


@dataclass
class SessionReport:
    """Session report for audit and review."""

    session_id: str
    started_at: datetime
    ended_at: datetime | None = None
    operations: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "operations": self.operations,
            "errors": self.errors,
            "summary": {
                "total_operations": len(self.operations),
                "total_errors": len(self.errors),
            },
        }

    def save(self, path: Path) -> None:
        """Save report to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


class Session:
    """
    One fsbackup invocation.

    Components are built lazily from the same configuration value object,
    backend and prompter.
    """

    def __init__(
        self,
        config: FsBackupConfig | None = None,
        backend: PlatformBackend | None = None,
        prompter: Prompter | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.config = config or load_config()
        self.started_at = datetime.now()

        setup_logging(self.config.logging)

        self.prompter = prompter or ConsolePrompter()
        self.session_logger = SessionLogger(
            self.config.get_session_file(),
            get_logger(f"session.{self.id[:8]}"),
        )
        self._report = SessionReport(session_id=self.id, started_at=self.started_at)

        # Platform backend (lazily loaded)
        self._platform_backend = backend

        logger.debug("Session started", session_id=self.id)

    @property
    def platform(self) -> PlatformBackend:
        """Get the platform-specific backend."""
        if self._platform_backend is None:
            from fsbackup.platform import get_platform_backend

            self._platform_backend = get_platform_backend()
        return self._platform_backend

    @property
    def preflight(self) -> PreflightChecker:
        return PreflightChecker(self.platform, self.config.safety)

    @property
    def resolver(self) -> DeviceResolver:
        return DeviceResolver(self.platform, self.config.devices)

    @property
    def mounts(self) -> MountManager:
        return MountManager(self.platform, self.config.backup)

    @property
    def catalog(self) -> BackupCatalog:
        return BackupCatalog(self.config.backup, self.prompter)

    @property
    def discovery(self) -> PartitionDiscovery:
        return PartitionDiscovery(self.platform, self.config.backup, self.prompter)

    @property
    def backup_engine(self) -> BackupEngine:
        return BackupEngine(self.platform, self.config, self.prompter)

    @property
    def restore_engine(self) -> RestoreEngine:
        return RestoreEngine(self.platform, self.config, self.prompter, self.catalog)

    def record(self, report: RunReport) -> None:
        """Track a finished backup or restore run in the session report."""
        record = report.to_dict()
        record["timestamp"] = datetime.now().isoformat()
        self._report.operations.append(record)

        for result in report.failed:
            self._report.errors.append(
                {
                    "timestamp": datetime.now().isoformat(),
                    "operation": report.operation,
                    "partition": result.partition.device_path,
                    "error": result.message,
                }
            )

        log = self.session_logger.info if report.all_succeeded else self.session_logger.warning
        log(report.summary(), operation=report.operation, status=report.status.name)

    def record_event(self, operation: str, **details: Any) -> None:
        """Track an operation that has no per-partition results (list, delete)."""
        self._report.operations.append(
            {"timestamp": datetime.now().isoformat(), "operation": operation, **details}
        )
        self.session_logger.info(f"{operation} finished", **details)

    def record_error(self, operation: str, error: BaseException) -> None:
        self._report.errors.append(
            {
                "timestamp": datetime.now().isoformat(),
                "operation": operation,
                "error_type": type(error).__name__,
                "error": str(error),
            }
        )
        self.session_logger.error(f"{operation} failed", error=str(error))

    def close(self) -> Path:
        """Close the session and save reports."""
        self._report.ended_at = datetime.now()
        self.session_logger.save()

        report_path = self.config.session_directory / f"report_{self.id[:8]}.json"
        self._report.save(report_path)

        logger.debug("Session closed", session_id=self.id, report_path=str(report_path))
        return report_path

    def get_report(self) -> SessionReport:
        return self._report

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
