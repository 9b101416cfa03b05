"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from stepladder import NOOP, MemoryAdaptor, Migration


class RecordingAdaptor(MemoryAdaptor):
    """In-memory adaptor that records every call and can fail on demand."""

    def __init__(self, applied=(), fail_on=None):
        super().__init__(applied)
        self.calls: list[tuple[str, int]] = []
        self.reads = 0
        self.fail_on = set(fail_on or ())

    def current_applied_versions(self) -> set[int]:
        self.reads += 1
        return super().current_applied_versions()

    def apply(self, migration: Migration) -> None:
        self.calls.append(("apply", migration.version))
        if migration.version in self.fail_on:
            raise RuntimeError(f"boom applying {migration.version}")
        super().apply(migration)

    def revert(self, migration: Migration) -> None:
        self.calls.append(("revert", migration.version))
        if migration.version in self.fail_on:
            raise RuntimeError(f"boom reverting {migration.version}")
        super().revert(migration)


def make_migration(version: int, depends_on=(), reversible: bool = True) -> Migration:
    """Build a no-op migration for orchestration tests."""
    kwargs = {"backward": NOOP} if reversible else {}
    return Migration(
        version=version,
        description=f"migration {version}",
        forward=NOOP,
        dependencies=frozenset(depends_on),
        **kwargs,
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configured by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Provide a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir
