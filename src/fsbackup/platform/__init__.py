"""
fsbackup Platform Abstraction Layer.

Wraps the system utilities fsbackup depends on.
"""

from __future__ import annotations

import platform

from fsbackup.platform.base import CommandResult, PlatformBackend


def get_platform_backend() -> PlatformBackend:
    """Get the appropriate platform backend for the current OS."""
    system = platform.system().lower()

    if system == "linux":
        from fsbackup.platform.linux import LinuxBackend

        return LinuxBackend()
    raise RuntimeError(f"Unsupported platform: {system}")


def get_platform_name() -> str:
    """Get the current platform name."""
    return platform.system().lower()


__all__ = [
    "CommandResult",
    "PlatformBackend",
    "get_platform_backend",
    "get_platform_name",
]
