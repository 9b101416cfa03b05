"""Migration orchestration.

The Migrator compares the registry against the adaptor's applied-state and
walks the target towards a requested version:

- registered versions at or below the target that are not applied are applied
  in ascending order;
- applied registered versions above the target are reverted in descending
  order, before any forward step.

Steps run one at a time. The first failure stops the run and is raised as
AdaptorFailureError; steps completed before it stay as the adaptor recorded
them. Applied versions that are not registered are never touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from stepladder.adaptor import Adaptor
from stepladder.errors import AdaptorFailureError, UnsupportedReversalError
from stepladder.logging import get_logger
from stepladder.migration import Migration
from stepladder.registry import Registry

log = get_logger("migrator")


class Direction(str, Enum):
    """Direction of a single migration step."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Step:
    """One planned adaptor call."""

    direction: Direction
    migration: Migration

    @property
    def version(self) -> int:
        return self.migration.version


@dataclass
class MigrationPlan:
    """Ordered steps needed to reach a target version.

    Attributes:
        target: Requested version, or None when reverting everything.
        steps: Reverts (descending) followed by applies (ascending).
    """

    target: int | None
    steps: list[Step] = field(default_factory=list)

    @property
    def reverts(self) -> list[Step]:
        return [s for s in self.steps if s.direction is Direction.DOWN]

    @property
    def applies(self) -> list[Step]:
        return [s for s in self.steps if s.direction is Direction.UP]

    @property
    def versions(self) -> list[int]:
        return [s.version for s in self.steps]

    def __bool__(self) -> bool:
        return bool(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


@dataclass
class MigrationStatus:
    """Snapshot of the target compared against the registry."""

    current_version: int | None
    applied: list[int]
    pending: list[Migration]
    unregistered: list[int]


class Migrator:
    """Drives an adaptor through the migrations held in a registry."""

    def __init__(self, adaptor: Adaptor, registry: Registry | None = None) -> None:
        self.adaptor = adaptor
        self.registry = registry if registry is not None else Registry()

    # -------------------------------------------------------------------------
    # Registry passthroughs
    # -------------------------------------------------------------------------

    def register(self, migration: Migration) -> None:
        """Register a migration. See Registry.register."""
        self.registry.register(migration)

    def has_version(self, version: int) -> bool:
        return self.registry.has_version(version)

    def first_version(self) -> int | None:
        return self.registry.first_version()

    def last_version(self) -> int | None:
        return self.registry.last_version()

    # -------------------------------------------------------------------------
    # Applied-state
    # -------------------------------------------------------------------------

    def applied_versions(self) -> set[int]:
        """Versions the adaptor currently reports as applied."""
        return set(self.adaptor.current_applied_versions())

    def current_version(self) -> int | None:
        """Highest applied version, or None if nothing is applied."""
        applied = self.applied_versions()
        return max(applied) if applied else None

    def status(self) -> MigrationStatus:
        """Compare the adaptor's applied-state against the registry."""
        applied = self.applied_versions()
        return MigrationStatus(
            current_version=max(applied) if applied else None,
            applied=sorted(v for v in applied if v in self.registry),
            pending=[m for m in self.registry if m.version not in applied],
            unregistered=sorted(v for v in applied if v not in self.registry),
        )

    def pending(self) -> list[Migration]:
        """Migrations that migrate_up() would apply."""
        return [step.migration for step in self.plan_up().applies]

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def plan(self, target: int) -> MigrationPlan:
        """Compute the steps migrate_to(target) would run, without running them.

        The target is inclusive and need not be a registered version: it only
        bounds which registered versions end up applied.
        """
        return self._plan(self.applied_versions(), target)

    def plan_up(self) -> MigrationPlan:
        """Plan towards the highest registered version."""
        last = self.registry.last_version()
        if last is None:
            return MigrationPlan(target=None)
        return self._plan(self.applied_versions(), last)

    def plan_down(self) -> MigrationPlan:
        """Plan reverting every applied registered migration."""
        return self._plan(self.applied_versions(), None)

    def _plan(self, applied: set[int], target: int | None) -> MigrationPlan:
        versions = self.registry.all_versions()

        if target is None:
            above = versions
            at_or_below: tuple[int, ...] = ()
        else:
            above = tuple(v for v in versions if v > target)
            at_or_below = tuple(v for v in versions if v <= target)

        plan = MigrationPlan(target=target)
        for version in reversed(above):
            if version not in applied:
                continue
            migration = self.registry.get(version)
            if not migration.reversible:
                log.error(
                    "migration_irreversible",
                    version=version,
                    description=migration.description,
                )
                raise UnsupportedReversalError(version, migration.description)
            plan.steps.append(Step(Direction.DOWN, migration))

        for version in at_or_below:
            if version in applied:
                continue
            plan.steps.append(Step(Direction.UP, self.registry.get(version)))

        return plan

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def migrate_to(self, target: int) -> MigrationPlan:
        """Apply or revert migrations until exactly the registered versions
        at or below target are applied.

        Returns:
            The plan that was executed.

        Raises:
            UnsupportedReversalError: If an irreversible migration would need
                reverting. Raised before any step runs.
            AdaptorFailureError: If a step fails. Earlier steps stay in effect.
        """
        return self._execute(self.plan(target))

    def migrate_up(self) -> MigrationPlan:
        """Apply every pending registered migration."""
        return self._execute(self.plan_up())

    def migrate_down(self) -> MigrationPlan:
        """Revert every applied registered migration."""
        return self._execute(self.plan_down())

    def _execute(self, plan: MigrationPlan) -> MigrationPlan:
        if not plan:
            log.info("no_pending_migrations", target=plan.target)
            return plan

        log.info(
            "migration_plan",
            target=plan.target,
            reverts=len(plan.reverts),
            applies=len(plan.applies),
        )

        for step in plan.steps:
            migration = step.migration
            if step.direction is Direction.UP:
                log.info(
                    "applying_migration",
                    version=migration.version,
                    description=migration.description,
                )
                action = self.adaptor.apply
            else:
                log.info(
                    "reverting_migration",
                    version=migration.version,
                    description=migration.description,
                )
                action = self.adaptor.revert

            try:
                action(migration)
            except Exception as e:
                log.error(
                    "migration_failed",
                    version=migration.version,
                    direction=step.direction.value,
                    error=str(e),
                )
                raise AdaptorFailureError(migration.version, e) from e

        log.info("migrations_complete", target=plan.target, count=len(plan))
        return plan
