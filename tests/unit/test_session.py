"""
Tests for fsbackup.core.session module.
"""

import json
from unittest.mock import Mock

from fsbackup.core.backup import BackupEngine
from fsbackup.core.catalog import BackupCatalog
from fsbackup.core.errors import DeviceNotFound
from fsbackup.core.models import PartitionId, PartitionResult, RunReport
from fsbackup.core.restore import RestoreEngine
from fsbackup.core.session import Session


class TestSession:
    def test_components_share_config_and_backend(
        self, session: Session, mock_platform_backend: Mock
    ) -> None:
        assert session.platform is mock_platform_backend
        assert isinstance(session.catalog, BackupCatalog)
        assert isinstance(session.backup_engine, BackupEngine)
        assert isinstance(session.restore_engine, RestoreEngine)
        assert session.backup_engine.config is session.config
        assert session.mounts.config is session.config.backup
        assert session.resolver.backend is mock_platform_backend

    def test_record_and_close(self, session: Session) -> None:
        report = RunReport(operation="backup", target="/dev/sda")
        report.add(PartitionResult(partition=PartitionId("/dev/sda", "1"), success=True))
        report.add(
            PartitionResult(
                partition=PartitionId("/dev/sda", "3"), success=False, message="write error"
            )
        )
        report.finish()

        session.record(report)
        session.record_error("restore", DeviceNotFound("NOPE"))
        report_path = session.close()

        data = json.loads(report_path.read_text())
        assert data["session_id"] == "test-session-id"
        assert data["operations"][0]["status"] == "PARTIAL"
        assert data["summary"] == {"total_operations": 1, "total_errors": 2}
        assert data["errors"][0]["partition"] == "/dev/sda3"
        assert data["errors"][1]["error_type"] == "DeviceNotFound"
        assert session.session_logger.session_file.is_file()

    def test_record_event(self, session: Session) -> None:
        session.record_event("delete", device="/dev/sdb1", deleted=["set1"])
        operation = session.get_report().operations[0]
        assert operation["operation"] == "delete"
        assert operation["deleted"] == ["set1"]
