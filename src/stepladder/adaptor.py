"""Adaptor contract between the migrator and a backend.

An adaptor owns the applied-state of a target system. The migrator reads the
applied versions once per call and then asks the adaptor to apply or revert
one migration at a time. Recording the version must succeed or fail together
with the migration's own effect; the migrator cannot tell the two apart.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable

from stepladder.logging import get_logger
from stepladder.migration import Migration

log = get_logger("adaptor")


class Adaptor(ABC):
    """Backend-specific persistence of applied migration versions."""

    @abstractmethod
    def current_applied_versions(self) -> set[int]:
        """Return the versions currently recorded as applied.

        Must reflect the target on every call; the migrator does not cache.
        """

    @abstractmethod
    def apply(self, migration: Migration) -> None:
        """Run the migration's forward operation and record it as applied."""

    @abstractmethod
    def revert(self, migration: Migration) -> None:
        """Run the migration's backward operation and remove its record.

        Raises:
            UnsupportedReversalError: If the migration is irreversible.
        """


class MemoryAdaptor(Adaptor):
    """Adaptor keeping applied-state in memory.

    Useful for tests and for rehearsing a plan against an in-process object.
    The context handed to each operation is ``context`` if given, otherwise
    the adaptor itself.
    """

    def __init__(self, applied: Iterable[int] = (), context: Any = None) -> None:
        self.applied: set[int] = set(applied)
        self.context = self if context is None else context

    def current_applied_versions(self) -> set[int]:
        return set(self.applied)

    def apply(self, migration: Migration) -> None:
        migration.up(self.context)
        self.applied.add(migration.version)
        log.debug("version_recorded", version=migration.version)

    def revert(self, migration: Migration) -> None:
        migration.down(self.context)
        self.applied.discard(migration.version)
        log.debug("version_removed", version=migration.version)
