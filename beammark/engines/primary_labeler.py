"""
Primary Labeler - grid-based marks for main beams.

A primary beam mark is built from three parts:
- the grid line the beam runs along (``primary_grid_name``)
- a sub-grid letter when the beam sits between two grid lines
- the span serial taken from the grid lines it spans

Span serials follow the end-on-grid convention: a beam whose far end lands
on grid N is the span before N and gets N - 1; otherwise it takes the value
of the grid nearest its near end.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Set

from beammark.core.config import LabelingConfig, UserGridConfig
from beammark.core.constants import GLOBAL_COORD_SYSTEM
from beammark.core.data_models import GridAxis, GridCatalog, GridLine, Member, Point, PrimaryLabel, Serial
from beammark.engines.orientation import AnalyzedMember, analyze_members, axis_deviations
from beammark.geometry.grid import bracketing_grids, grid_at, grid_serial_value, nearest_grid
from beammark.geometry.transform import local_bounds, local_center

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def span_serial(
    member: AnalyzedMember,
    system_grids: GridCatalog,
    along_x: bool,
    grids: GridCatalog,
    tolerance: float,
    user_config: Optional[UserGridConfig] = None,
) -> Optional[Serial]:
    """Serial of the span a member covers along one local axis.

    Args:
        member: Analyzed member
        system_grids: Grid lines of the member's coordinate system
        along_x: Use local X extents and X grid lines (else Y)
        grids: Full catalog, for the coordinate transform
        tolerance: On-grid tolerance for the far end
        user_config: Per-grid serial overrides

    Returns:
        Serial value, or None when no grid line can be used
    """
    bounds = local_bounds(member.geometry, member.coord_system, grids)
    if along_x:
        axis, axis_grids = GridAxis.X, system_grids.x
        low, high = bounds.min_x, bounds.max_x
    else:
        axis, axis_grids = GridAxis.Y, system_grids.y
        low, high = bounds.min_y, bounds.max_y

    end_grid = nearest_grid(high, axis_grids)
    if end_grid is None:
        return None

    if abs(high - end_grid.ordinate) < tolerance:
        serial = grid_serial_value(end_grid, axis_grids, axis, user_config)
        return serial - 1 if _is_number(serial) else serial

    start_grid = nearest_grid(low, axis_grids)
    return grid_serial_value(start_grid, axis_grids, axis, user_config)


def _position_coordinate(member: AnalyzedMember, use_x: bool, grids: GridCatalog) -> float:
    center = local_center(member.geometry, member.coord_system, grids)
    return center.x if use_x else center.y


def sub_grid_marker(
    member: AnalyzedMember,
    peers: Iterable[AnalyzedMember],
    below: GridLine,
    above: GridLine,
    use_x: bool,
    grids: GridCatalog,
) -> str:
    """Letter for a member between two adjacent grid lines.

    Peers whose centers fall strictly inside the same gap are ranked by
    their coordinate rounded to 2 decimals; the member gets
    ``chr(ord('a') + rank)``. Members sharing a rounded coordinate share a
    letter.
    """
    coords: Set[str] = set()
    for peer in peers:
        value = _position_coordinate(peer, use_x, grids)
        if below.ordinate < value < above.ordinate:
            coords.add(f"{value:.2f}")
    ranked = sorted(coords, key=float)
    own = f"{_position_coordinate(member, use_x, grids):.2f}"
    if own not in ranked:
        return ""
    return chr(ord("a") + ranked.index(own))


@dataclass(frozen=True)
class _GridPosition:
    grid_name: str
    marker: str


def _locate(
    member: AnalyzedMember,
    position_grids: List[GridLine],
    peers: List[AnalyzedMember],
    use_x: bool,
    grids: GridCatalog,
    tolerance: float,
) -> Optional[_GridPosition]:
    """Grid the member runs along, plus its sub-grid letter."""
    coordinate = _position_coordinate(member, use_x, grids)

    on_grid = grid_at(coordinate, position_grids, tolerance)
    if on_grid is not None:
        return _GridPosition(on_grid.display_name, "")

    below, above = bracketing_grids(coordinate, position_grids)
    reference = below or above
    if reference is None:
        return None

    marker = ""
    if below is not None and above is not None:
        marker = sub_grid_marker(member, peers, below, above, use_x, grids)
    return _GridPosition(reference.display_name, marker)


class PrimaryLabeler:
    """Grid-based labeler for the primary beams of one floor.

    The labeler is rebuilt for every call and keeps no state between floors.
    """

    def __init__(self, grids: GridCatalog, config: Optional[LabelingConfig] = None):
        self.grids = grids
        self.config = config or LabelingConfig()

    def label(self, members: Iterable[Member], joints: Mapping[str, Point]) -> Dict[str, PrimaryLabel]:
        """Label every member that can be placed on the grid.

        Members repeated with the same story, name and joints are labeled
        once. Results are keyed without the story, so pass one story per call.

        Returns:
            Member key ("{name}|{joint1}|{joint2}") -> PrimaryLabel
        """
        analyzed = analyze_members(
            members,
            joints,
            self.grids,
            self.config.position_tolerance,
            self.config.angle_tolerance,
        )

        labels: Dict[str, PrimaryLabel] = {}
        seen: Set[str] = set()
        for member in analyzed:
            if member.member.story_key in seen:
                continue
            seen.add(member.member.story_key)

            if member.is_diagonal:
                result = self._label_diagonal(member, analyzed)
            else:
                result = self._label_axis_aligned(member, analyzed)

            if result is None:
                logger.debug(f"Primary beam {member.name} left unlabeled")
                continue
            labels[member.key] = result

        logger.info(f"Primary labels: {len(labels)} of {len(analyzed)} members labeled")
        return labels

    def _label_axis_aligned(
        self,
        member: AnalyzedMember,
        analyzed: List[AnalyzedMember],
    ) -> Optional[PrimaryLabel]:
        # Vertical members run along X grid lines and span Y grid lines
        use_x = member.is_vertical
        system_grids = self.grids.for_coord_system(member.coord_system)
        position_grids = system_grids.x if use_x else system_grids.y
        if not position_grids:
            position_grids = self.grids.x if use_x else self.grids.y

        peers = [
            other for other in analyzed
            if other.orientation == member.orientation and other.coord_system == member.coord_system
        ]
        position = _locate(member, position_grids, peers, use_x, self.grids, self.config.tolerance)
        if position is None:
            return None

        serial = span_serial(
            member,
            system_grids,
            along_x=member.is_horizontal,
            grids=self.grids,
            tolerance=self.config.tolerance,
            user_config=self.config.user_grid_config,
        )
        if serial is None or (_is_number(serial) and serial == -1):
            return None

        return PrimaryLabel(
            serial=serial,
            primary_grid_name=position.grid_name,
            sub_grid_marker=position.marker,
            is_vertical=member.is_vertical,
            coord_system=member.coord_system,
        )

    def _label_diagonal(
        self,
        member: AnalyzedMember,
        analyzed: List[AnalyzedMember],
    ) -> Optional[PrimaryLabel]:
        if member.coord_system == GLOBAL_COORD_SYSTEM:
            return None
        system_grids = self.grids.for_coord_system(member.coord_system)
        if system_grids.is_empty:
            return None

        system_angle = self.grids.coord_system(member.coord_system).angle or 0.0
        from_x, from_y = axis_deviations(member.geometry, system_angle)
        along_x = from_x < from_y

        # A diagonal running closer to local X is positioned on Y grid lines
        use_x = not along_x
        position_grids = system_grids.x if use_x else system_grids.y
        peers = [
            other for other in analyzed
            if other.is_diagonal and other.coord_system == member.coord_system
        ]
        position = _locate(member, position_grids, peers, use_x, self.grids, self.config.tolerance)
        if position is None:
            return None

        serial = span_serial(
            member,
            system_grids,
            along_x=along_x,
            grids=self.grids,
            tolerance=self.config.tolerance,
            user_config=self.config.user_grid_config,
        )
        if serial is None:
            return None

        logger.debug(
            f"Diagonal beam {member.name} in {member.coord_system} (rz={system_angle}), "
            f"along {'X' if along_x else 'Y'}, grid {position.grid_name}{position.marker}, serial {serial}"
        )
        return PrimaryLabel(
            serial=serial,
            primary_grid_name=position.grid_name,
            sub_grid_marker=position.marker,
            is_diagonal=True,
            is_along_x=along_x,
            coord_system=member.coord_system,
        )


def generate_primary_labels(
    members: Iterable[Member],
    joints: Mapping[str, Point],
    grids: GridCatalog,
    config: Optional[LabelingConfig] = None,
) -> Dict[str, PrimaryLabel]:
    """Label the primary beams of one floor against the grid."""
    return PrimaryLabeler(grids, config).label(members, joints)
