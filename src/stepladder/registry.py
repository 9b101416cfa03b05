"""In-memory registry of known migrations.

The registry is built once at startup and read-only afterwards. Dependencies
must be registered before their dependents, so a dependency cycle cannot be
expressed and no graph walk is needed.
"""

from __future__ import annotations

from bisect import insort
from typing import Iterable, Iterator

from stepladder.errors import (
    DependencyOrderError,
    DuplicateVersionError,
    MigrationNotFoundError,
    UnknownDependencyError,
)
from stepladder.logging import get_logger
from stepladder.migration import Migration

log = get_logger("registry")


class Registry:
    """Ordered collection of migrations keyed by version."""

    def __init__(self, migrations: Iterable[Migration] = ()) -> None:
        self._migrations: dict[int, Migration] = {}
        self._versions: list[int] = []
        for migration in migrations:
            self.register(migration)

    def register(self, migration: Migration) -> None:
        """Add a migration.

        Args:
            migration: Migration to add.

        Raises:
            DuplicateVersionError: If the version is already registered.
            UnknownDependencyError: If a dependency is not registered yet.
            DependencyOrderError: If a dependency does not have a lower version.
        """
        version = migration.version
        if version in self._migrations:
            log.warning("duplicate_migration_version", version=version)
            raise DuplicateVersionError(version)

        for dependency in sorted(migration.dependencies):
            if dependency not in self._migrations:
                raise UnknownDependencyError(version, dependency)
            if dependency >= version:
                raise DependencyOrderError(version, dependency)

        self._migrations[version] = migration
        insort(self._versions, version)
        log.debug(
            "migration_registered",
            version=version,
            description=migration.description,
        )

    def get(self, version: int) -> Migration:
        """Look up a migration by version.

        Raises:
            MigrationNotFoundError: If no migration has this version.
        """
        try:
            return self._migrations[version]
        except KeyError:
            raise MigrationNotFoundError(version) from None

    def all_versions(self) -> tuple[int, ...]:
        """Registered versions, lowest first."""
        return tuple(self._versions)

    def has_version(self, version: int) -> bool:
        return version in self._migrations

    def first_version(self) -> int | None:
        """Lowest registered version, or None if nothing is registered."""
        return self._versions[0] if self._versions else None

    def last_version(self) -> int | None:
        """Highest registered version, or None if nothing is registered."""
        return self._versions[-1] if self._versions else None

    def __contains__(self, version: object) -> bool:
        return version in self._migrations

    def __iter__(self) -> Iterator[Migration]:
        return (self._migrations[v] for v in self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __repr__(self) -> str:
        return f"<Registry versions={self._versions}>"
