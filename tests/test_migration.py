"""Tests for the Migration entity."""

import types

import pytest

from stepladder import IRREVERSIBLE, NOOP, Migration, UnsupportedReversalError


class TestMigration:
    """Tests for construction and operations."""

    def test_up_runs_forward_with_context(self) -> None:
        seen = []
        migration = Migration(1, "first", forward=seen.append, backward=NOOP)

        migration.up("ctx")

        assert seen == ["ctx"]

    def test_down_runs_backward_with_context(self) -> None:
        seen = []
        migration = Migration(1, "first", forward=NOOP, backward=seen.append)

        migration.down("ctx")

        assert seen == ["ctx"]

    def test_default_backward_is_irreversible(self) -> None:
        migration = Migration(1, "first", forward=NOOP)

        assert migration.backward is IRREVERSIBLE
        assert migration.reversible is False

    def test_down_on_irreversible_raises(self) -> None:
        migration = Migration(7, "drop legacy", forward=NOOP)

        with pytest.raises(UnsupportedReversalError) as exc_info:
            migration.down(None)

        assert exc_info.value.version == 7
        assert "drop legacy" in str(exc_info.value)

    def test_irreversible_marker_called_directly(self) -> None:
        migration = Migration(7, "drop legacy", forward=NOOP)

        with pytest.raises(UnsupportedReversalError) as exc_info:
            migration.backward(None)

        assert exc_info.value.version is None
        assert str(exc_info.value) == "Operation is irreversible"

    def test_noop_backward_is_reversible(self) -> None:
        migration = Migration(1, "first", forward=NOOP, backward=NOOP)
        assert migration.reversible is True
        migration.down(None)

    def test_dependencies_are_frozen(self) -> None:
        migration = Migration(3, "third", forward=NOOP, dependencies=[1, 2])
        assert migration.dependencies == frozenset({1, 2})

    def test_is_immutable(self) -> None:
        migration = Migration(1, "first", forward=NOOP)
        with pytest.raises(AttributeError):
            migration.version = 2  # type: ignore[misc]

    @pytest.mark.parametrize("version", ["1", 1.5, True, None])
    def test_rejects_non_integer_version(self, version) -> None:
        with pytest.raises(TypeError):
            Migration(version, "bad", forward=NOOP)  # type: ignore[arg-type]

    def test_rejects_non_callable_operation(self) -> None:
        with pytest.raises(TypeError):
            Migration(1, "bad", forward="CREATE TABLE x")  # type: ignore[arg-type]

    def test_str(self) -> None:
        assert str(Migration(42, "answer", forward=NOOP)) == "Migration 42: answer"


class TestFromModule:
    """Tests for building migrations from modules."""

    def _module(self, **attrs) -> types.ModuleType:
        module = types.ModuleType("m")
        for key, value in attrs.items():
            setattr(module, key, value)
        return module

    def test_full_module(self) -> None:
        def upgrade(ctx):
            pass

        def downgrade(ctx):
            pass

        module = self._module(
            VERSION=5,
            DESCRIPTION="Add things",
            DEPENDS_ON=[2],
            upgrade=upgrade,
            downgrade=downgrade,
        )

        migration = Migration.from_module(module)

        assert migration.version == 5
        assert migration.description == "Add things"
        assert migration.dependencies == frozenset({2})
        assert migration.forward is upgrade
        assert migration.backward is downgrade

    def test_module_without_downgrade_is_irreversible(self) -> None:
        module = self._module(VERSION=1, DESCRIPTION="x", upgrade=lambda ctx: None)
        assert Migration.from_module(module).reversible is False

    def test_module_without_description(self) -> None:
        module = self._module(VERSION=1, upgrade=lambda ctx: None)
        assert Migration.from_module(module).description == "No description"

    @pytest.mark.parametrize("depends_on", [1, "1", [1, "2"], [True]])
    def test_module_with_malformed_depends_on(self, depends_on) -> None:
        module = self._module(VERSION=3, DEPENDS_ON=depends_on, upgrade=lambda ctx: None)

        with pytest.raises(ValueError, match="DEPENDS_ON") as exc_info:
            Migration.from_module(module)

        assert module.__name__ in str(exc_info.value)

    def test_module_with_tuple_depends_on(self) -> None:
        module = self._module(VERSION=3, DEPENDS_ON=(1, 2), upgrade=lambda ctx: None)
        assert Migration.from_module(module).dependencies == frozenset({1, 2})

    def test_module_without_upgrade(self) -> None:
        module = self._module(VERSION=1, DESCRIPTION="x")
        with pytest.raises(ValueError, match="upgrade"):
            Migration.from_module(module)
