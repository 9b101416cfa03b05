"""Tests for the migration registry."""

import pytest

from stepladder import (
    DependencyOrderError,
    DuplicateVersionError,
    MigrationNotFoundError,
    Registry,
    UnknownDependencyError,
)

from conftest import make_migration


class TestRegistration:
    """Tests for registering migrations."""

    def test_empty_registry(self) -> None:
        registry = Registry()
        assert len(registry) == 0
        assert registry.all_versions() == ()
        assert registry.first_version() is None
        assert registry.last_version() is None

    def test_versions_sorted_regardless_of_registration_order(self) -> None:
        registry = Registry()
        for version in (30, 10, 20):
            registry.register(make_migration(version))

        assert registry.all_versions() == (10, 20, 30)
        assert [m.version for m in registry] == [10, 20, 30]
        assert registry.first_version() == 10
        assert registry.last_version() == 30

    def test_constructor_registers_migrations(self) -> None:
        registry = Registry([make_migration(2), make_migration(1)])
        assert registry.all_versions() == (1, 2)

    def test_duplicate_version_rejected(self) -> None:
        registry = Registry()
        first = make_migration(10)
        registry.register(first)

        with pytest.raises(DuplicateVersionError) as exc_info:
            registry.register(make_migration(10))

        assert exc_info.value.version == 10
        assert registry.all_versions() == (10,)
        assert registry.get(10) is first

    def test_has_version(self) -> None:
        registry = Registry()
        assert registry.has_version(10) is False
        registry.register(make_migration(10))
        assert registry.has_version(10) is True
        assert 10 in registry
        assert 20 not in registry


class TestDependencies:
    """Tests for dependency validation at registration time."""

    def test_dependency_registered_first(self) -> None:
        registry = Registry()
        registry.register(make_migration(1))
        registry.register(make_migration(2, depends_on=[1]))
        assert registry.all_versions() == (1, 2)

    def test_unknown_dependency_rejected(self) -> None:
        registry = Registry()
        registry.register(make_migration(1))

        with pytest.raises(UnknownDependencyError) as exc_info:
            registry.register(make_migration(3, depends_on=[2]))

        assert exc_info.value.version == 3
        assert exc_info.value.dependency == 2
        assert registry.all_versions() == (1,)

    def test_dependency_registered_later_rejected(self) -> None:
        registry = Registry()
        with pytest.raises(UnknownDependencyError):
            registry.register(make_migration(2, depends_on=[1]))
        registry.register(make_migration(1))
        assert registry.all_versions() == (1,)

    def test_dependency_on_higher_version_rejected(self) -> None:
        registry = Registry()
        registry.register(make_migration(20))

        with pytest.raises(DependencyOrderError):
            registry.register(make_migration(10, depends_on=[20]))

        assert registry.all_versions() == (20,)


class TestLookup:
    """Tests for get()."""

    def test_get_registered(self) -> None:
        migration = make_migration(5)
        registry = Registry([migration])
        assert registry.get(5) is migration

    def test_get_missing(self) -> None:
        registry = Registry([make_migration(5)])
        with pytest.raises(MigrationNotFoundError) as exc_info:
            registry.get(6)
        assert exc_info.value.version == 6
        assert str(exc_info.value) == "No migration registered with version 6"
