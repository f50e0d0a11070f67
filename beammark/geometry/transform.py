"""
Coordinate transforms between the GLOBAL frame and rotated/offset local
coordinate systems.

Local = R(-angle) @ (global - origin); global = R(angle) @ local + origin.
"""

import math
from typing import Tuple

from beammark.core.data_models import Bounds, CoordinateSystem, GridCatalog, MemberGeometry, Point


def global_to_local(point: Point, coord_system: CoordinateSystem) -> Point:
    """Express a GLOBAL point in the local frame of ``coord_system``."""
    angle_rad = math.radians(coord_system.angle or 0.0)
    cos_a = math.cos(angle_rad)
    sin_a = math.sin(angle_rad)

    tx = point.x - (coord_system.ux or 0.0)
    ty = point.y - (coord_system.uy or 0.0)

    return Point(tx * cos_a + ty * sin_a, -tx * sin_a + ty * cos_a)


def local_to_global(point: Point, coord_system: CoordinateSystem) -> Point:
    """Inverse of global_to_local."""
    angle_rad = math.radians(coord_system.angle or 0.0)
    cos_a = math.cos(angle_rad)
    sin_a = math.sin(angle_rad)

    gx = point.x * cos_a - point.y * sin_a + (coord_system.ux or 0.0)
    gy = point.x * sin_a + point.y * cos_a + (coord_system.uy or 0.0)
    return Point(gx, gy)


def local_center(member: MemberGeometry, system_name: str, grids: GridCatalog) -> Point:
    """Member midpoint in the local frame of a named system (GLOBAL = as is)."""
    coord_system = grids.coord_system(system_name)
    if coord_system.is_global:
        return member.center
    return global_to_local(member.center, coord_system)


def local_endpoints(
    member: MemberGeometry,
    system_name: str,
    grids: GridCatalog,
) -> Tuple[Point, Point]:
    coord_system = grids.coord_system(system_name)
    if coord_system.is_global:
        return member.j1, member.j2
    return global_to_local(member.j1, coord_system), global_to_local(member.j2, coord_system)


def local_bounds(member: MemberGeometry, system_name: str, grids: GridCatalog) -> Bounds:
    """Member extent in the local frame of a named system."""
    p1, p2 = local_endpoints(member, system_name, grids)
    return Bounds(
        min_x=min(p1.x, p2.x),
        max_x=max(p1.x, p2.x),
        min_y=min(p1.y, p2.y),
        max_y=max(p1.y, p2.y),
    )
