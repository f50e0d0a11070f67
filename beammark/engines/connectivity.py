"""
Connectivity Grouper - building components of one floor.

Members are nodes of an undirected graph; two members are connected when
any pair of endpoints coincides or an endpoint of one lies on the other.
Components are found by breadth-first traversal over member indices,
visiting members in input order.
"""

import logging
from collections import deque
from typing import List, Mapping, Optional, Sequence

from beammark.core.constants import GEOMETRIC_TOLERANCE, SYMMETRY_TOLERANCE
from beammark.core.data_models import AxisDirection, Bounds, Member, MemberGeometry, Point
from beammark.geometry.kernel import distance, is_point_on_segment

logger = logging.getLogger(__name__)


def are_connected(a: MemberGeometry, b: MemberGeometry, tolerance: float = GEOMETRIC_TOLERANCE) -> bool:
    """Endpoint coincidence or endpoint-on-segment in either direction."""
    for p in (a.j1, a.j2):
        for q in (b.j1, b.j2):
            if distance(p, q) < tolerance:
                return True
    return (
        is_point_on_segment(a.j1, b.j1, b.j2, tolerance)
        or is_point_on_segment(a.j2, b.j1, b.j2, tolerance)
        or is_point_on_segment(b.j1, a.j1, a.j2, tolerance)
        or is_point_on_segment(b.j2, a.j1, a.j2, tolerance)
    )


def build_adjacency(
    geometries: Sequence[MemberGeometry],
    tolerance: float = GEOMETRIC_TOLERANCE,
) -> List[List[int]]:
    """Adjacency lists over member indices, neighbours in ascending order."""
    adjacency: List[List[int]] = [[] for _ in geometries]
    for i in range(len(geometries)):
        for j in range(i + 1, len(geometries)):
            if are_connected(geometries[i], geometries[j], tolerance):
                adjacency[i].append(j)
                adjacency[j].append(i)
    return adjacency


def connected_components(adjacency: Sequence[Sequence[int]]) -> List[List[int]]:
    """Breadth-first components; each starts at the lowest unvisited index."""
    visited = [False] * len(adjacency)
    components: List[List[int]] = []
    for start in range(len(adjacency)):
        if visited[start]:
            continue
        visited[start] = True
        component = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbour in adjacency[current]:
                if not visited[neighbour]:
                    visited[neighbour] = True
                    queue.append(neighbour)
        components.append(component)
    return components


def _own_coordinate(point: Point, direction: AxisDirection) -> float:
    return point.x if direction == AxisDirection.VERTICAL else point.y


def split_by_axis(
    geometries: Sequence[MemberGeometry],
    axis_value: Optional[float] = None,
    symmetry_tolerance: float = SYMMETRY_TOLERANCE,
    direction: AxisDirection = AxisDirection.VERTICAL,
) -> List[List[MemberGeometry]]:
    """Re-partition members into the two halves of a mirror axis.

    Members whose midpoint lies within ``symmetry_tolerance`` of the axis
    join the first (left / lower) half. Without an axis value the midpoint
    of the members' extent is used.

    Returns:
        [left + center] and [right], each only when non-empty
    """
    if not geometries:
        return []

    if axis_value is None:
        coords = [_own_coordinate(p, direction) for g in geometries for p in (g.j1, g.j2)]
        axis_value = (min(coords) + max(coords)) / 2
        logger.info(f"Mirror grouping uses floor midpoint axis {axis_value:.3f}")

    left, center, right = [], [], []
    for geometry in geometries:
        mid = _own_coordinate(geometry.center, direction)
        if abs(mid - axis_value) < symmetry_tolerance:
            center.append(geometry)
        elif mid < axis_value:
            left.append(geometry)
        else:
            right.append(geometry)

    logger.info(f"Mirror grouping: left {len(left)}, center {len(center)}, right {len(right)}")

    halves = []
    if left or center:
        halves.append(left + center)
    if right:
        halves.append(right)
    return halves


def find_components(
    members: Sequence[Member],
    joints: Mapping[str, Point],
    mirror_mode: bool = False,
    axis_override: Optional[float] = None,
    tolerance: float = GEOMETRIC_TOLERANCE,
    symmetry_tolerance: float = SYMMETRY_TOLERANCE,
    direction: AxisDirection = AxisDirection.VERTICAL,
) -> List[List[MemberGeometry]]:
    """Group members of one floor into building components.

    Args:
        members: Members of the floor, in input order
        joints: Joint table
        mirror_mode: Replace connectivity groups by the two axis halves
        axis_override: Mirror axis ordinate (None = floor midpoint)
        tolerance: Geometric tolerance for connectivity
        symmetry_tolerance: On-axis tolerance for mirror grouping
        direction: Mirror axis direction

    Returns:
        Components as lists of MemberGeometry
    """
    geometries = [g for g in (MemberGeometry.resolve(m, joints) for m in members) if g is not None]
    if not geometries:
        return []

    adjacency = build_adjacency(geometries, tolerance)
    components = [[geometries[i] for i in comp] for comp in connected_components(adjacency)]

    if mirror_mode:
        flattened = [g for comp in components for g in comp]
        logger.info(f"Mirror mode: regrouping {len(components)} connectivity component(s)")
        return split_by_axis(flattened, axis_override, symmetry_tolerance, direction)

    logger.info(f"Found {len(components)} building component(s)")
    return components


def component_bounds(component: Sequence[MemberGeometry]) -> Optional[Bounds]:
    """Extent of all endpoints of a component."""
    if not component:
        return None
    xs = [p.x for g in component for p in (g.j1, g.j2)]
    ys = [p.y for g in component for p in (g.j1, g.j2)]
    return Bounds(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))
