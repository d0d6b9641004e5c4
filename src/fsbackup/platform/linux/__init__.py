"""
fsbackup Linux Platform Backend.

Drives standard Linux tools:
- lsblk, findmnt for inventory
- fdisk, sgdisk, sfdisk, partprobe for partition tables
- mount, umount for the backup destination
- fsarchiver for filesystem archives
"""

from fsbackup.platform.linux.backend import LinuxBackend
from fsbackup.platform.linux.parsers import (
    parse_disk_partitions,
    parse_fdisk_label,
    parse_findmnt_source,
    parse_lsblk_json,
)

__all__ = [
    "LinuxBackend",
    "parse_disk_partitions",
    "parse_fdisk_label",
    "parse_findmnt_source",
    "parse_lsblk_json",
]
