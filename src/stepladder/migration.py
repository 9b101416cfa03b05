"""The Migration entity and its operation markers.

A migration pairs a version with a forward and a backward operation. Operations
are plain callables taking whatever context the adaptor supplies (a SQLAlchemy
Connection for SqlAdaptor, for instance).

Example:
    create_users = Migration(
        version=20240101120000,
        description="Create users table",
        forward=lambda conn: conn.execute(text("CREATE TABLE users (id INTEGER)")),
        backward=lambda conn: conn.execute(text("DROP TABLE users")),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Iterable

from stepladder.errors import UnsupportedReversalError

Operation = Callable[[Any], Any]


class _Noop:
    """Operation that does nothing."""

    def __call__(self, context: Any) -> None:
        return None

    def __repr__(self) -> str:
        return "NOOP"


class _Irreversible:
    """Marker for a backward operation that cannot be performed."""

    def __call__(self, context: Any) -> None:
        raise UnsupportedReversalError(None)

    def __repr__(self) -> str:
        return "IRREVERSIBLE"


NOOP: Operation = _Noop()
IRREVERSIBLE: Operation = _Irreversible()


@dataclass(frozen=True)
class Migration:
    """An immutable, versioned unit of schema change."""

    version: int
    description: str
    forward: Operation
    backward: Operation = IRREVERSIBLE
    dependencies: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if isinstance(self.version, bool) or not isinstance(self.version, int):
            raise TypeError(f"Migration version must be an integer, got {self.version!r}")
        if not isinstance(self.description, str):
            raise TypeError(f"Migration {self.version} description must be a string")
        if not callable(self.forward) or not callable(self.backward):
            raise TypeError(f"Migration {self.version} operations must be callable")
        if not isinstance(self.dependencies, frozenset):
            object.__setattr__(self, "dependencies", frozenset(self.dependencies))

    @property
    def reversible(self) -> bool:
        """Whether this migration declares a backward operation."""
        return self.backward is not IRREVERSIBLE

    def up(self, context: Any) -> None:
        """Run the forward operation."""
        self.forward(context)

    def down(self, context: Any) -> None:
        """Run the backward operation.

        Raises:
            UnsupportedReversalError: If the migration is irreversible.
        """
        if not self.reversible:
            raise UnsupportedReversalError(self.version, self.description)
        self.backward(context)

    @classmethod
    def from_module(cls, module: ModuleType) -> "Migration":
        """Build a migration from a migration module.

        The module must define VERSION, DESCRIPTION and upgrade(context). It may
        define downgrade(context) and DEPENDS_ON (an iterable of versions).
        A module without downgrade is irreversible.

        Raises:
            ValueError: If a required attribute is missing or DEPENDS_ON is
                not a collection of integer versions.
        """
        for attr in ("VERSION", "upgrade"):
            if not hasattr(module, attr):
                raise ValueError(f"Migration module {module.__name__} is missing {attr}")

        depends_on: Iterable[int] = getattr(module, "DEPENDS_ON", ())
        if isinstance(depends_on, (str, bytes)) or not isinstance(depends_on, Iterable):
            raise ValueError(
                f"Migration module {module.__name__} DEPENDS_ON must be a list of versions"
            )
        depends_on = list(depends_on)
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in depends_on):
            raise ValueError(
                f"Migration module {module.__name__} DEPENDS_ON must contain integer versions"
            )

        return cls(
            version=module.VERSION,
            description=getattr(module, "DESCRIPTION", "No description"),
            forward=module.upgrade,
            backward=getattr(module, "downgrade", IRREVERSIBLE),
            dependencies=frozenset(depends_on),
        )

    def __str__(self) -> str:
        return f"Migration {self.version}: {self.description}"
