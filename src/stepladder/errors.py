"""Exception hierarchy for stepladder.

Every error raised by the registry and the migrator derives from
MigrationError, so callers can catch the whole family in one place.
"""

from __future__ import annotations

from pathlib import Path


class MigrationError(Exception):
    """Base class for all migration errors."""


class DuplicateVersionError(MigrationError):
    """Raised when a migration version is registered twice."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Migration with version {version} is already registered")


class UnknownDependencyError(MigrationError):
    """Raised when a migration depends on a version that is not registered."""

    def __init__(self, version: int, dependency: int) -> None:
        self.version = version
        self.dependency = dependency
        super().__init__(
            f"Migration {version} depends on unregistered version {dependency}"
        )


class DependencyOrderError(MigrationError):
    """Raised when a migration depends on a version that is not lower than its own."""

    def __init__(self, version: int, dependency: int) -> None:
        self.version = version
        self.dependency = dependency
        super().__init__(
            f"Migration {version} cannot depend on version {dependency}: "
            "dependencies must have a lower version"
        )


class MigrationNotFoundError(MigrationError, KeyError):
    """Raised when looking up a version that is not registered."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"No migration registered with version {version}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class MigrationLoadError(MigrationError):
    """Raised when a migration file cannot be turned into a migration."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot load migration file {path}: {cause}")


class UnsupportedReversalError(MigrationError):
    """Raised when reverting a migration that declares no backward operation.

    version is None when the irreversible marker is called on its own,
    outside any migration.
    """

    def __init__(self, version: int | None, description: str | None = None) -> None:
        self.version = version
        self.description = description
        if version is None:
            super().__init__("Operation is irreversible")
            return
        label = f"{version} ({description})" if description else f"{version}"
        super().__init__(f"Migration {label} does not support rollback")


class AdaptorFailureError(MigrationError):
    """Raised when the adaptor fails to apply or revert a migration.

    Attributes:
        version: Version of the migration that failed.
        cause: The exception raised by the adaptor.
    """

    def __init__(self, version: int, cause: BaseException) -> None:
        self.version = version
        self.cause = cause
        super().__init__(f"Migration {version} failed: {cause}")
