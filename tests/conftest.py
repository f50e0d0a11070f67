import sys
from pathlib import Path
from typing import Dict, Iterable, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from beammark.core.data_models import (
    CoordinateSystem,
    GridAxis,
    GridCatalog,
    GridLine,
    Member,
    Point,
)


def make_members(
    segments: Iterable[Tuple[str, Tuple[float, float], Tuple[float, float]]],
    prop: str = "B40x60",
    story: str = "2F",
) -> Tuple[list, Dict[str, Point]]:
    """Members and a joint table from (name, start, end) tuples.

    Joints are named by coordinate so touching members share joint names.
    """
    joints: Dict[str, Point] = {}
    members = []

    def joint_name(xy: Tuple[float, float]) -> str:
        name = f"J{xy[0]:g}_{xy[1]:g}"
        joints[name] = Point(float(xy[0]), float(xy[1]))
        return name

    for name, start, end in segments:
        members.append(Member(name=name, prop=prop, joint1=joint_name(start), joint2=joint_name(end), story=story))
    return members, joints


@pytest.fixture
def abc_grids() -> GridCatalog:
    """X grids A@0, B@5, C@10 and Y grids 1@0, 2@8, all GLOBAL primary."""
    return GridCatalog.build(
        x=[
            GridLine("A", GridAxis.X, 0.0),
            GridLine("B", GridAxis.X, 5.0),
            GridLine("C", GridAxis.X, 10.0),
        ],
        y=[
            GridLine("1", GridAxis.Y, 0.0),
            GridLine("2", GridAxis.Y, 8.0),
        ],
    )


@pytest.fixture
def rotated_grids(abc_grids) -> GridCatalog:
    """abc_grids plus a local system R offset to (100, 0) with grids P1/P2, Q1/Q2."""
    return GridCatalog.build(
        x=abc_grids.x + [
            GridLine("P1", GridAxis.X, 0.0, coord_system="R"),
            GridLine("P2", GridAxis.X, 6.0, coord_system="R"),
        ],
        y=abc_grids.y + [
            GridLine("Q1", GridAxis.Y, 0.0, coord_system="R"),
            GridLine("Q2", GridAxis.Y, 4.0, coord_system="R"),
        ],
        coord_systems=[CoordinateSystem("R", ux=100.0, uy=0.0, angle=0.0)],
    )


@pytest.fixture
def build_members():
    """Factory fixture wrapping make_members."""
    return make_members
