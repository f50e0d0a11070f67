"""
Orientation Classifier

Classifies members as horizontal, vertical or diagonal relative to the
axes of their resolved coordinate system.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from beammark.core.constants import ANGLE_TOLERANCE, POSITION_TOLERANCE
from beammark.core.data_models import GridCatalog, Member, MemberGeometry, Orientation, Point
from beammark.engines.coord_resolver import resolve_coord_system
from beammark.geometry.kernel import angle_difference, beam_angle

logger = logging.getLogger(__name__)


def axis_deviations(member: MemberGeometry, system_angle: float):
    """Angular distance of the member to the local X and Y axes.

    Both axis directions and their reverses are considered.

    Returns:
        (deviation_from_x, deviation_from_y) in degrees
    """
    angle = beam_angle(member.j1, member.j2)
    from_x = min(
        angle_difference(angle, system_angle),
        angle_difference(angle, system_angle + 180.0),
    )
    from_y = min(
        angle_difference(angle, system_angle + 90.0),
        angle_difference(angle, system_angle + 270.0),
    )
    return from_x, from_y


def classify_orientation(
    member: MemberGeometry,
    system_name: str,
    grids: GridCatalog,
    angle_tolerance: float = ANGLE_TOLERANCE,
) -> Orientation:
    """Classify a member against the axes of a named coordinate system.

    Horizontal wins over vertical when both are within tolerance, which
    only happens with tolerances of 45 degrees or more.
    """
    system_angle = grids.coord_system(system_name).angle or 0.0
    from_x, from_y = axis_deviations(member, system_angle)
    if from_x <= angle_tolerance:
        return Orientation.HORIZONTAL
    if from_y <= angle_tolerance:
        return Orientation.VERTICAL
    return Orientation.DIAGONAL


@dataclass(frozen=True)
class AnalyzedMember:
    """Member geometry with its resolved system and orientation."""
    geometry: MemberGeometry
    coord_system: str
    orientation: Orientation

    @property
    def member(self) -> Member:
        return self.geometry.member

    @property
    def key(self) -> str:
        return self.geometry.key

    @property
    def name(self) -> str:
        return self.geometry.name

    @property
    def j1(self) -> Point:
        return self.geometry.j1

    @property
    def j2(self) -> Point:
        return self.geometry.j2

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == Orientation.HORIZONTAL

    @property
    def is_vertical(self) -> bool:
        return self.orientation == Orientation.VERTICAL

    @property
    def is_diagonal(self) -> bool:
        return self.orientation == Orientation.DIAGONAL


def analyze_member(
    member: Member,
    joints: Mapping[str, Point],
    grids: GridCatalog,
    position_tolerance: float = POSITION_TOLERANCE,
    angle_tolerance: float = ANGLE_TOLERANCE,
) -> Optional[AnalyzedMember]:
    """Resolve geometry, coordinate system and orientation of one member.

    Returns None when a joint is missing from the table.
    """
    geometry = MemberGeometry.resolve(member, joints)
    if geometry is None:
        logger.debug(f"Skipping {member.name}: joint {member.joint1} or {member.joint2} not found")
        return None
    system_name = resolve_coord_system(geometry, grids, position_tolerance)
    orientation = classify_orientation(geometry, system_name, grids, angle_tolerance)
    return AnalyzedMember(geometry=geometry, coord_system=system_name, orientation=orientation)


def analyze_members(
    members: Iterable[Member],
    joints: Mapping[str, Point],
    grids: GridCatalog,
    position_tolerance: float = POSITION_TOLERANCE,
    angle_tolerance: float = ANGLE_TOLERANCE,
) -> List[AnalyzedMember]:
    """Analyze members in input order, dropping those with missing joints."""
    analyzed = []
    missing = 0
    for member in members:
        result = analyze_member(member, joints, grids, position_tolerance, angle_tolerance)
        if result is None:
            missing += 1
            continue
        analyzed.append(result)
    if missing:
        logger.warning(f"{missing} member(s) skipped due to missing joint coordinates")
    return analyzed
