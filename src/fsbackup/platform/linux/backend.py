"""
Linux Platform Backend Implementation.

Drives the standard Linux tools fsbackup depends on.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import time
from pathlib import Path
from typing import Any

import psutil

from fsbackup.core.logging import get_logger
from fsbackup.core.models import MountInfo
from fsbackup.platform.base import CommandResult, PlatformBackend
from fsbackup.platform.linux.parsers import (
    flatten_block_devices,
    parse_disk_partitions,
    parse_fdisk_label,
    parse_findmnt_source,
    parse_lsblk_json,
)

logger = get_logger(__name__)


class LinuxBackend(PlatformBackend):
    """Linux implementation of the system collaborators."""

    # Tool paths (can be overridden for testing)
    LSBLK = "lsblk"
    FINDMNT = "findmnt"
    MOUNT = "mount"
    UMOUNT = "umount"
    FDISK = "fdisk"
    SFDISK = "sfdisk"
    SGDISK = "sgdisk"
    PARTPROBE = "partprobe"
    FSARCHIVER = "fsarchiver"

    @property
    def name(self) -> str:
        return "linux"

    def is_admin(self) -> bool:
        return os.geteuid() == 0

    def _check_tool(self, tool: str) -> bool:
        """Check if a tool is available."""
        return shutil.which(tool) is not None

    def missing_tools(self, tools: list[str]) -> list[str]:
        return [tool for tool in tools if not self._check_tool(tool)]

    def run_command(
        self,
        command: list[str],
        timeout: int | None = 300,
        check: bool = True,
        input: str | None = None,
    ) -> CommandResult:
        """Run a system command."""
        logger.debug("Running command", command=command)
        start_time = time.time()

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input,
            )
            duration = time.time() - start_time

            cmd_result = CommandResult(
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
                command=command,
                duration_seconds=duration,
            )

            if check and result.returncode != 0:
                logger.warning(
                    "Command failed",
                    command=command,
                    returncode=result.returncode,
                    stderr=result.stderr[:500] if result.stderr else "",
                )

            return cmd_result

        except subprocess.TimeoutExpired:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                command=command,
                duration_seconds=float(timeout or 0),
            )
        except OSError as e:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=str(e),
                command=command,
                duration_seconds=time.time() - start_time,
            )

    # ==================== Block Devices ====================

    def list_block_devices(self) -> list[dict[str, Any]]:
        """Enumerate block devices using lsblk."""
        result = self.run_command(
            [self.LSBLK, "-J", "-p", "-o", "NAME,PATH,TYPE,UUID,PARTUUID,LABEL"],
            check=False,
        )
        if not result.success:
            logger.warning("lsblk failed", error=result.error_text)
            return []
        return flatten_block_devices(parse_lsblk_json(result.stdout))

    def is_block_device(self, path: str) -> bool:
        try:
            return stat.S_ISBLK(os.stat(path).st_mode)
        except OSError:
            return False

    def path_exists(self, path: str) -> bool:
        return os.path.exists(path)

    def canonical_path(self, path: str) -> str:
        return os.path.realpath(path)

    def list_partitions(self, disk_path: str) -> list[dict[str, Any]]:
        """List partitions of a disk with their filesystem type."""
        result = self.run_command(
            [self.LSBLK, "-J", "-p", "-o", "NAME,PATH,TYPE,FSTYPE", disk_path],
            check=False,
        )
        if not result.success:
            logger.warning("lsblk failed", disk=disk_path, error=result.error_text)
            return []
        return parse_disk_partitions(result.stdout, disk_path)

    def get_fstype(self, device_path: str) -> str | None:
        result = self.run_command([self.LSBLK, "-fno", "FSTYPE", device_path], check=False)
        if not result.success:
            return None
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return lines[0] if lines else None

    def get_root_source(self) -> str | None:
        result = self.run_command([self.FINDMNT, "-n", "-o", "SOURCE", "/"], check=False)
        if not result.success:
            return None
        return parse_findmnt_source(result.stdout)

    def get_mounts(self) -> dict[str, MountInfo]:
        """Get current mounts of block devices."""
        mounts: dict[str, MountInfo] = {}
        for part in psutil.disk_partitions(all=True):
            if not part.device.startswith("/dev/") or part.device in mounts:
                continue
            mounts[part.device] = MountInfo(
                device=part.device,
                mountpoint=part.mountpoint,
                fstype=part.fstype,
                options=part.opts.split(",") if part.opts else [],
            )
        return mounts

    # ==================== Mounting ====================

    def mount(self, device_path: str, mount_point: Path) -> CommandResult:
        return self.run_command([self.MOUNT, device_path, str(mount_point)])

    def unmount(self, target: str | Path) -> CommandResult:
        return self.run_command([self.UMOUNT, str(target)])

    # ==================== Partition Tables ====================

    def get_label_type(self, disk_path: str) -> tuple[bool, str | None]:
        result = self.run_command([self.FDISK, "-l", disk_path])
        if not result.success:
            return False, None
        return True, parse_fdisk_label(result.stdout)

    def save_gpt_table(self, disk_path: str, output: Path) -> CommandResult:
        return self.run_command([self.SGDISK, f"--backup={output}", disk_path])

    def dump_partition_table(self, disk_path: str) -> CommandResult:
        return self.run_command([self.SFDISK, "--dump", disk_path])

    def load_gpt_table(self, dump: Path, disk_path: str) -> CommandResult:
        return self.run_command([self.SGDISK, f"--load-backup={dump}", disk_path])

    def load_partition_table(self, dump: Path, disk_path: str) -> CommandResult:
        return self.run_command([self.SFDISK, disk_path], input=dump.read_text())

    def reread_partitions(self, disk_path: str) -> CommandResult:
        return self.run_command([self.PARTPROBE, disk_path])

    # ==================== Archiver ====================

    def cpu_count(self) -> int:
        return psutil.cpu_count() or 1

    def archive_filesystem(
        self,
        device_path: str,
        archive: Path,
        threads: int,
        compression_level: int,
        allow_live: bool = False,
        verbose: bool = True,
    ) -> CommandResult:
        cmd = [self.FSARCHIVER, "savefs"]
        if verbose:
            cmd.append("-v")
        cmd.extend([f"-j{threads}", f"-Z{compression_level}"])
        if allow_live:
            cmd.append("-A")
        cmd.extend([str(archive), device_path])
        return self.run_command(cmd, timeout=None)

    def restore_filesystem(self, archive: Path, device_path: str) -> CommandResult:
        return self.run_command(
            [self.FSARCHIVER, "restfs", str(archive), f"id=0,dest={device_path}"],
            timeout=None,
        )

    # ==================== Files ====================

    def directory_size(self, path: Path) -> int:
        """Sum allocated blocks of every file below ``path`` (like ``du``)."""
        total = 0
        for dirpath, _dirnames, filenames in os.walk(path):
            for filename in filenames:
                try:
                    st = os.lstat(os.path.join(dirpath, filename))
                except OSError:
                    continue
                total += st.st_blocks * 512
        return total
