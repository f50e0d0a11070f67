"""
Unit Tests for the Grid Model

Tests grid name parsing, catalog construction, nearest / bracketing grid
queries and grid serial values with user overrides.
"""

import pytest

from beammark.core.config import UserGridConfig, parse_serial_input
from beammark.core.data_models import (
    CoordinateSystem,
    GridAxis,
    GridCatalog,
    GridLine,
    GridLineType,
    compose_grid_name,
    display_grid_name,
    parse_grid_name,
)
from beammark.geometry.grid import (
    bracketing_grids,
    grid_at,
    grid_serial_value,
    grids_strictly_inside,
    nearest_grid,
)


class TestGridNames:
    """Tests for grid name parsing and composition."""

    def test_parse_letter_and_number(self):
        parsed = parse_grid_name("C12")
        assert parsed.prefix == "C"
        assert parsed.num == 12

    def test_parse_strips_axis_prefix_on_request(self):
        parsed = parse_grid_name("X6", strip_axis_prefix=True)
        assert parsed.prefix == ""
        assert parsed.num == 6
        assert parsed.original == "6"

    def test_parse_empty(self):
        parsed = parse_grid_name(None)
        assert (parsed.prefix, parsed.num) == ("", 0)

    @pytest.mark.parametrize("prefix,num", [("A", 0), ("B", 3), ("XY", 12), ("", 7), ("Gx", 105)])
    def test_compose_parse_round_trip(self, prefix, num):
        """Test that parsing a composed name recovers prefix and number."""
        parsed = parse_grid_name(compose_grid_name(prefix, num))
        assert (parsed.prefix, parsed.num) == (prefix, num)

    def test_display_name_strips_own_axis_letter(self):
        assert display_grid_name(GridLine("X6", GridAxis.X, 0.0)) == "6"
        assert display_grid_name(GridLine("Y10", GridAxis.Y, 0.0)) == "10"

    def test_display_name_keeps_other_letters(self):
        assert GridLine("Y3", GridAxis.X, 0.0).display_name == "Y3"
        assert GridLine("X", GridAxis.X, 0.0).display_name == "X"


class TestGridCatalog:
    """Tests for catalog construction and lookups."""

    def test_build_dedups_by_name_last_wins(self):
        catalog = GridCatalog.build(
            x=[GridLine("A", GridAxis.X, 0.0), GridLine("A", GridAxis.X, 2.0)],
        )
        assert len(catalog.x) == 1
        assert catalog.x[0].ordinate == 2.0

    def test_build_sorts_global_first_then_system_then_ordinate(self):
        catalog = GridCatalog.build(
            x=[
                GridLine("S2", GridAxis.X, 1.0, coord_system="S"),
                GridLine("B", GridAxis.X, 5.0),
                GridLine("R1", GridAxis.X, 0.0, coord_system="R"),
                GridLine("A", GridAxis.X, 0.0),
            ],
        )
        assert [g.name for g in catalog.x] == ["A", "B", "R1", "S2"]

    def test_unknown_coord_system_resolves_to_global(self, rotated_grids):
        assert rotated_grids.coord_system("NOPE").is_global
        assert rotated_grids.coord_system("R").ux == 100.0

    def test_for_coord_system(self, rotated_grids):
        subset = rotated_grids.for_coord_system("R")
        assert [g.name for g in subset.x] == ["P1", "P2"]
        assert [g.name for g in subset.y] == ["Q1", "Q2"]

    def test_is_empty(self):
        assert GridCatalog().is_empty
        assert not GridCatalog.build(y=[GridLine("1", GridAxis.Y, 0.0)]).is_empty

    def test_axis_lookup(self, abc_grids):
        assert abc_grids.axis(GridAxis.X) is abc_grids.x
        assert abc_grids.axis(GridAxis.Y) is abc_grids.y

    def test_declared_system_kept(self):
        catalog = GridCatalog.build(coord_systems=[CoordinateSystem("R", angle=30.0)])
        assert catalog.coord_systems["R"].angle == 30.0


class TestGridQueries:
    """Tests for nearest, on-grid and bracketing queries."""

    def test_nearest_grid(self, abc_grids):
        assert nearest_grid(4.2, abc_grids.x).name == "B"

    def test_nearest_grid_tie_keeps_first(self, abc_grids):
        """Test that a coordinate midway between two grids picks the earlier one."""
        assert nearest_grid(2.5, abc_grids.x).name == "A"

    def test_nearest_grid_empty(self):
        assert nearest_grid(1.0, []) is None

    def test_grid_at(self, abc_grids):
        assert grid_at(5.05, abc_grids.x, 0.1).name == "B"
        assert grid_at(5.2, abc_grids.x, 0.1) is None

    def test_bracketing_grids(self, abc_grids):
        below, above = bracketing_grids(7.0, abc_grids.x)
        assert (below.name, above.name) == ("B", "C")

    def test_bracketing_past_the_end(self, abc_grids):
        below, above = bracketing_grids(12.0, abc_grids.x)
        assert below.name == "C"
        assert above is None

    def test_grids_strictly_inside(self, abc_grids):
        assert [g.name for g in grids_strictly_inside(0.0, 10.0, abc_grids.x)] == ["B"]


class TestGridSerialValue:
    """Tests for grid serial resolution order."""

    def test_index_for_letter_names(self, abc_grids):
        grid = abc_grids.x[1]
        assert grid_serial_value(grid, abc_grids.x, GridAxis.X) == 2

    def test_integer_name(self, abc_grids):
        grid = abc_grids.y[1]
        assert grid_serial_value(grid, abc_grids.y, GridAxis.Y) == 2

    def test_secondary_grid_uses_name(self):
        grid = GridLine("2a", GridAxis.X, 2.5, line_type=GridLineType.SECONDARY)
        assert grid_serial_value(grid, [grid], GridAxis.X) == "2a"

    def test_user_override(self, abc_grids):
        config = UserGridConfig(x={"B": 7})
        assert grid_serial_value(abc_grids.x[1], abc_grids.x, GridAxis.X, config) == 7

    def test_user_skip(self, abc_grids):
        config = UserGridConfig(x={"B": None})
        assert grid_serial_value(abc_grids.x[1], abc_grids.x, GridAxis.X, config) is None


class TestUserGridConfig:
    """Tests for user serial input and auto increment."""

    @pytest.mark.parametrize("text", ["", "-", "skip", "SKIP", None])
    def test_skip_inputs(self, text):
        assert parse_serial_input(text) is None

    def test_numeric_and_string_inputs(self):
        assert parse_serial_input(" 12 ") == 12
        assert parse_serial_input("2a") == "2a"

    def test_auto_increment(self, abc_grids):
        config = UserGridConfig()
        config.auto_increment(GridAxis.X, abc_grids.x, "B", 10)
        assert config.x == {"B": 10, "C": 11}

    def test_auto_increment_unknown_grid(self, abc_grids):
        with pytest.raises(ValueError, match="Unknown grid line"):
            UserGridConfig().auto_increment(GridAxis.X, abc_grids.x, "Z", 1)
