"""
fsbackup preflight checks.

Verifies privileges and external tools before any device is touched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fsbackup.core.errors import PrivilegeError, ToolMissing
from fsbackup.core.logging import get_logger

if TYPE_CHECKING:
    from fsbackup.core.config import SafetyConfig
    from fsbackup.platform.base import PlatformBackend

logger = get_logger(__name__)

# External tools each command drives
COMMAND_TOOLS: dict[str, list[str]] = {
    "backup": ["lsblk", "findmnt", "mount", "umount", "fdisk", "sgdisk", "sfdisk", "fsarchiver"],
    "list": ["lsblk", "mount", "umount"],
    "delete": ["lsblk", "mount", "umount"],
    "restore": [
        "lsblk",
        "findmnt",
        "mount",
        "umount",
        "sgdisk",
        "sfdisk",
        "partprobe",
        "fsarchiver",
    ],
}


@dataclass
class PreflightCheck:
    """Result of a single preflight check."""

    name: str
    passed: bool
    message: str
    severity: str = "info"  # info, warning, error
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class PreflightReport:
    """Complete preflight check report."""

    checks: list[PreflightCheck] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def all_passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def has_errors(self) -> bool:
        return any(c.severity == "error" and not c.passed for c in self.checks)

    def get(self, name: str) -> PreflightCheck | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None

    def get_summary(self) -> str:
        """Get human-readable summary."""
        passed = sum(1 for c in self.checks if c.passed)
        lines = [f"Preflight: {passed}/{len(self.checks)} checks passed"]
        for check in self.checks:
            status = "✓" if check.passed else "✗"
            lines.append(f"[{status}] {check.name}: {check.message}")
        return "\n".join(lines)


CheckFunc = Callable[["PlatformBackend", str], PreflightCheck]


def check_privileges(backend: PlatformBackend, command: str) -> PreflightCheck:
    """Block devices can only be read, mounted and written as root."""
    if backend.is_admin():
        return PreflightCheck(name="Privileges", passed=True, message="Running as root")
    return PreflightCheck(
        name="Privileges",
        passed=False,
        message="This must be run as root",
        severity="error",
    )


def check_required_tools(backend: PlatformBackend, command: str) -> PreflightCheck:
    """Every external tool the command drives must be installed."""
    missing = backend.missing_tools(COMMAND_TOOLS.get(command, []))
    if not missing:
        return PreflightCheck(name="Tools", passed=True, message="All required tools found")
    return PreflightCheck(
        name="Tools",
        passed=False,
        message=f"Missing: {', '.join(missing)}",
        severity="error",
        details={"missing": missing},
    )


class PreflightChecker:
    """Runs preflight checks for a command and enforces the fatal ones."""

    def __init__(self, backend: PlatformBackend, config: SafetyConfig) -> None:
        self.backend = backend
        self.config = config
        self._checks: list[CheckFunc] = []
        if config.require_root:
            self._checks.append(check_privileges)
        self._checks.append(check_required_tools)

    def run_checks(self, command: str) -> PreflightReport:
        report = PreflightReport()
        for check_func in self._checks:
            report.checks.append(check_func(self.backend, command))
        logger.debug("Preflight finished", command=command, passed=report.all_passed)
        return report

    def enforce(self, command: str) -> PreflightReport:
        """Raise the matching precondition error for the first failed check."""
        if not self.config.preflight_checks_enabled:
            return PreflightReport()

        report = self.run_checks(command)
        privileges = report.get("Privileges")
        if privileges is not None and not privileges.passed:
            raise PrivilegeError(command)
        tools = report.get("Tools")
        if tools is not None and not tools.passed:
            raise ToolMissing(tools.details["missing"])
        return report
