"""stepladder - a database-agnostic schema migration orchestrator."""

from stepladder.adaptor import Adaptor, MemoryAdaptor
from stepladder.errors import (
    AdaptorFailureError,
    DependencyOrderError,
    DuplicateVersionError,
    MigrationError,
    MigrationLoadError,
    MigrationNotFoundError,
    UnknownDependencyError,
    UnsupportedReversalError,
)
from stepladder.migration import IRREVERSIBLE, NOOP, Migration
from stepladder.migrator import Direction, MigrationPlan, MigrationStatus, Migrator, Step
from stepladder.registry import Registry

__version__ = "0.1.0"

__all__ = [
    "IRREVERSIBLE",
    "NOOP",
    "Adaptor",
    "AdaptorFailureError",
    "DependencyOrderError",
    "Direction",
    "DuplicateVersionError",
    "MemoryAdaptor",
    "Migration",
    "MigrationError",
    "MigrationLoadError",
    "MigrationNotFoundError",
    "MigrationPlan",
    "MigrationStatus",
    "Migrator",
    "Registry",
    "Step",
    "UnknownDependencyError",
    "UnsupportedReversalError",
    "__version__",
]
