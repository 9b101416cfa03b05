"""Discovery of migration files on disk.

Each migration file follows the pattern NNN_description.py:

    VERSION = 3
    DESCRIPTION = "Add index on users.email"
    DEPENDS_ON = [1]  # optional

    def upgrade(conn):
        conn.execute(text("CREATE INDEX ix_users_email ON users (email)"))

    def downgrade(conn):  # optional; absent means irreversible
        conn.execute(text("DROP INDEX ix_users_email"))
"""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from stepladder.errors import MigrationLoadError
from stepladder.logging import get_logger
from stepladder.migration import Migration
from stepladder.registry import Registry

log = get_logger("discovery")

MIGRATION_GLOB = "[0-9]*_*.py"


def _import_file(path: Path) -> ModuleType:
    digest = hashlib.sha1(str(path.parent.resolve()).encode()).hexdigest()[:10]
    module_name = f"_stepladder_migrations_{digest}.{path.stem}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load migration file: {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[module_name]
        raise
    return module


def load_migrations(directory: Path | str) -> list[Migration]:
    """Import every migration file in a directory.

    Args:
        directory: Directory holding NNN_description.py files.

    Returns:
        Migrations sorted by version.

    Raises:
        FileNotFoundError: If the directory does not exist.
        MigrationLoadError: If a file fails to import or is malformed.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Migrations directory not found: {directory}")

    migrations: list[Migration] = []
    for path in sorted(directory.glob(MIGRATION_GLOB)):
        try:
            module = _import_file(path)
        except Exception as e:
            log.error("migration_import_failed", file=path.name, error=str(e))
            raise MigrationLoadError(path, e) from e

        if not hasattr(module, "VERSION"):
            log.warning("migration_missing_version", file=path.name)
            continue

        try:
            migrations.append(Migration.from_module(module))
        except (ValueError, TypeError) as e:
            log.error("migration_invalid", file=path.name, error=str(e))
            raise MigrationLoadError(path, e) from e

    log.debug("migrations_discovered", directory=str(directory), count=len(migrations))
    return sorted(migrations, key=lambda m: m.version)


def build_registry(directory: Path | str) -> Registry:
    """Load a directory of migration files into a new registry."""
    return Registry(load_migrations(directory))
