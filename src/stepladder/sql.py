"""SQLAlchemy adaptor.

Uses SQLAlchemy Core (not ORM). Applied versions live in a small version
table; each apply/revert runs the migration and the record change inside one
transaction, and hands the migration the open Connection as its context.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    create_engine,
    event,
    inspect,
    select,
)
from sqlalchemy.engine import Engine, make_url

from stepladder.adaptor import Adaptor
from stepladder.config import Config
from stepladder.logging import get_logger
from stepladder.migration import Migration

log = get_logger("sql")


def version_table(name: str, metadata: MetaData) -> Table:
    """Define the table recording applied migration versions."""
    return Table(
        name,
        metadata,
        Column("version", BigInteger, primary_key=True, autoincrement=False),
        Column("description", String, nullable=True),
        Column("applied_at", DateTime, nullable=False),
    )


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    SQLite file databases get their parent directory created and foreign key
    enforcement switched on for every connection. pysqlite's own transaction
    handling is disabled and SQLAlchemy emits BEGIN itself, so DDL run by a
    migration rolls back together with its version record.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(config.database.url)
    is_sqlite = url.get_backend_name() == "sqlite"

    if is_sqlite and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, echo=config.database.echo)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # pysqlite only opens transactions before DML; take over BEGIN
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


class SqlAdaptor(Adaptor):
    """Adaptor recording applied versions in a SQL table."""

    def __init__(self, engine: Engine, table_name: str = "_schema_version") -> None:
        self.engine = engine
        self.metadata = MetaData()
        self.table = version_table(table_name, self.metadata)

    @classmethod
    def from_config(cls, config: Config) -> "SqlAdaptor":
        """Build an adaptor from the database section of the config."""
        return cls(get_engine(config), table_name=config.database.version_table)

    def ensure_table(self) -> None:
        """Create the version table if it does not exist."""
        self.metadata.create_all(self.engine, tables=[self.table])

    def current_applied_versions(self) -> set[int]:
        # A target that has never been migrated has no version table yet
        if not inspect(self.engine).has_table(self.table.name):
            return set()

        with self.engine.connect() as conn:
            return set(conn.execute(select(self.table.c.version)).scalars())

    def applied_records(self) -> list[dict]:
        """Rows of the version table, lowest version first."""
        if not inspect(self.engine).has_table(self.table.name):
            return []

        with self.engine.connect() as conn:
            rows = conn.execute(
                select(self.table).order_by(self.table.c.version)
            ).mappings()
            return [dict(row) for row in rows]

    def apply(self, migration: Migration) -> None:
        self.ensure_table()
        with self.engine.begin() as conn:
            migration.up(conn)
            conn.execute(
                self.table.insert().values(
                    version=migration.version,
                    description=migration.description,
                    applied_at=datetime.now(timezone.utc),
                )
            )
        log.debug("version_recorded", version=migration.version, table=self.table.name)

    def revert(self, migration: Migration) -> None:
        self.ensure_table()
        with self.engine.begin() as conn:
            migration.down(conn)
            conn.execute(
                self.table.delete().where(self.table.c.version == migration.version)
            )
        log.debug("version_removed", version=migration.version, table=self.table.name)
