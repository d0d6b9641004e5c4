"""
Pytest configuration and fixtures for fsbackup tests.
"""

import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Generator
from unittest.mock import Mock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fsbackup.core.prompts import Cancel, Choice, Prompter, Select  # noqa: E402
from fsbackup.platform.base import CommandResult, PlatformBackend  # noqa: E402


def ok(stdout: str = "", command: str = "mock") -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout, stderr="", command=command)


def failed(stderr: str = "failed", command: str = "mock") -> CommandResult:
    return CommandResult(returncode=1, stdout="", stderr=stderr, command=command)


class ScriptedPrompter(Prompter):
    """
    Prompter answering from pre-loaded scripts.

    ``confirms`` and ``answers`` are consumed in order, falling back to the
    prompt's default. ``choices`` holds 0-based menu indexes (None means
    Cancel); an exhausted script cancels. ``checklists`` holds lists of
    0-based indexes (None means Cancel); an exhausted script accepts all.
    """

    def __init__(self) -> None:
        self.confirms: list[bool] = []
        self.choices: list[int | None] = []
        self.checklists: list[list[int] | None] = []
        self.answers: list[str] = []
        self.questions: list[str] = []
        self.menus: list[list[str]] = []
        self.notices: list[tuple[str, str]] = []

    def confirm(self, message: str, default: bool = False) -> bool:
        self.questions.append(message)
        return self.confirms.pop(0) if self.confirms else default

    def ask(self, message: str, default: str = "") -> str:
        self.questions.append(message)
        return self.answers.pop(0) if self.answers else default

    def choose(self, title: str, options: Sequence[tuple[str, Any]]) -> Choice[Any]:
        self.menus.append([label for label, _ in options])
        pick = self.choices.pop(0) if self.choices else None
        if pick is None:
            return Cancel()
        return Select(options[pick][1])

    def checklist(self, title: str, options: Sequence[tuple[str, Any]]) -> Choice[list[Any]]:
        self.menus.append([label for label, _ in options])
        if not self.checklists:
            return Select([value for _, value in options])
        picks = self.checklists.pop(0)
        if picks is None:
            return Cancel()
        return Select([options[i][1] for i in picks])

    def notify(self, message: str, level: str = "info") -> None:
        self.notices.append((level, message))

    def notice_text(self) -> str:
        return "\n".join(message for _, message in self.notices)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def mock_platform_backend() -> Mock:
    """
    Create a mock platform backend.

    Every collaborator succeeds by default. Table dumps and archives are
    written to disk so backup-sets look real.
    """
    backend = Mock(spec=PlatformBackend)
    backend.name = "mock"
    backend.is_admin.return_value = True
    backend.missing_tools.return_value = []

    backend.list_block_devices.return_value = []
    backend.path_exists.return_value = True
    backend.is_block_device.return_value = True
    backend.canonical_path.side_effect = lambda path: path
    backend.list_partitions.return_value = []
    backend.get_fstype.return_value = None
    backend.get_root_source.return_value = None
    backend.get_mounts.return_value = {}

    backend.mount.return_value = ok()
    backend.unmount.return_value = ok()

    def save_gpt_table(disk_path: str, output: Path) -> CommandResult:
        output.write_bytes(b"GPT\x00backup")
        return ok()

    def archive_filesystem(device_path: str, archive: Path, **kwargs: Any) -> CommandResult:
        archive.write_bytes(b"FsA0" + device_path.encode())
        return ok(stdout=f"Statistics for filesystem 0 of {device_path}\n")

    backend.get_label_type.return_value = (True, "gpt")
    backend.save_gpt_table.side_effect = save_gpt_table
    backend.dump_partition_table.return_value = ok("label: dos\ndevice: /dev/sda\n")
    backend.load_gpt_table.return_value = ok()
    backend.load_partition_table.return_value = ok()
    backend.reread_partitions.return_value = ok()

    backend.cpu_count.return_value = 4
    backend.archive_filesystem.side_effect = archive_filesystem
    backend.restore_filesystem.return_value = ok("restfs done\n")
    backend.directory_size.return_value = 1536 * 1024

    return backend


@pytest.fixture
def sample_config() -> Generator["FsBackupConfig", None, None]:
    """Create a sample configuration for testing."""
    from fsbackup.core.config import FsBackupConfig

    with tempfile.TemporaryDirectory() as tmpdir:
        config = FsBackupConfig(
            session_directory=Path(tmpdir) / "sessions",
        )
        config.logging.log_directory = Path(tmpdir) / "logs"
        config.logging.file_enabled = False
        config.logging.console_enabled = False
        config.backup.mount_point = Path(tmpdir) / "mnt"
        config.ensure_directories()
        yield config


@pytest.fixture
def backup_root(sample_config: "FsBackupConfig") -> Path:
    """An already mounted backup-set root."""
    root = sample_config.backup.backup_root
    root.mkdir(parents=True)
    return root


@pytest.fixture
def make_backup_set(backup_root: Path):
    """Factory writing a backup-set directory by hand."""

    def _make(
        name: str,
        pt_type: str | None = "gpt",
        suffixes: Sequence[str] = ("1",),
        comment: str | None = None,
    ) -> Path:
        path = backup_root / name
        path.mkdir()
        if pt_type is not None:
            (path / "pt-type").write_text(f"{pt_type}\n")
            dump = "disk-pt.gpt" if pt_type == "gpt" else "disk-pt.sf"
            (path / dump).write_bytes(b"table")
        for suffix in suffixes:
            (path / f"{suffix}.fsa").write_bytes(b"FsA0")
        if comment is not None:
            (path / "comment.txt").write_text(f"{comment}\n")
        return path

    return _make


@pytest.fixture
def session(
    sample_config: "FsBackupConfig",
    mock_platform_backend: Mock,
    prompter: ScriptedPrompter,
) -> "Session":
    """A session wired to the mock backend and scripted prompter."""
    from fsbackup.core.session import Session

    return Session(
        config=sample_config,
        backend=mock_platform_backend,
        prompter=prompter,
        session_id="test-session-id",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
