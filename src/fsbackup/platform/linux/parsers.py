"""
Linux output parsers.

Parsers for lsblk, fdisk and findmnt output.
"""

from __future__ import annotations

import json
import re
from typing import Any


def parse_lsblk_json(output: str) -> list[dict[str, Any]]:
    """Parse JSON output from lsblk."""
    try:
        data = json.loads(output)
        return data.get("blockdevices", [])
    except json.JSONDecodeError:
        return []


def flatten_block_devices(blocks: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten the lsblk device tree, parents before children."""
    result: list[dict[str, Any]] = []
    for block in blocks:
        result.append(block)
        result.extend(flatten_block_devices(block.get("children") or []))
    return result


def device_path_of(block: dict[str, Any]) -> str:
    """Absolute device path of an lsblk entry."""
    path = block.get("path") or block.get("name") or ""
    if path and not path.startswith("/dev/"):
        path = f"/dev/{path}"
    return path


def parse_disk_partitions(output: str, disk_path: str) -> list[dict[str, Any]]:
    """
    Extract the partitions of ``disk_path`` from ``lsblk -J -p`` output.

    A partition belongs to the disk when its path is the disk path followed
    by a partition number (``/dev/sda1``, ``/dev/nvme0n1p2``).
    """
    pattern = re.compile(re.escape(disk_path) + r"p?\d+$")
    partitions = []
    for block in flatten_block_devices(parse_lsblk_json(output)):
        path = device_path_of(block)
        if block.get("type") not in ("part", None):
            continue
        if not pattern.match(path):
            continue
        partitions.append({"path": path, "fstype": block.get("fstype") or None})
    return sorted(partitions, key=lambda p: _natural_key(p["path"]))


def _natural_key(path: str) -> list[Any]:
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", path)]


def parse_fdisk_label(output: str) -> str | None:
    """
    Read the label type from ``fdisk -l`` output.

    Example line:
    Disklabel type: gpt
    """
    for line in output.splitlines():
        match = re.match(r"^Disklabel type:\s*(\S+)", line.strip())
        if match:
            return match.group(1).lower()
    return None


def parse_findmnt_source(output: str) -> str | None:
    """
    Parse ``findmnt -n -o SOURCE /``.

    Btrfs subvolume mounts report ``/dev/sda2[/@]``; the bracketed suffix is
    dropped so the result is a device path.
    """
    source = output.strip().splitlines()[0].strip() if output.strip() else ""
    if not source:
        return None
    return re.sub(r"\[.*\]$", "", source)
