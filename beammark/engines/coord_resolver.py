"""
Coordinate-System Resolver

Picks the coordinate system whose grid lines best explain a member's
endpoints. Each endpoint is transformed into every system's local frame and
scores one point per axis whose grid lines it lands on.
"""

import logging
from typing import Dict, List, Optional

from beammark.core.constants import GLOBAL_COORD_SYSTEM, POSITION_TOLERANCE
from beammark.core.data_models import CoordinateSystem, GridCatalog, MemberGeometry
from beammark.geometry.transform import global_to_local

logger = logging.getLogger(__name__)


def _candidate_systems(grids: GridCatalog) -> List[CoordinateSystem]:
    # GLOBAL is always a candidate and is scored first
    systems = [CoordinateSystem.global_system()]
    systems.extend(cs for name, cs in grids.coord_systems.items() if name != GLOBAL_COORD_SYSTEM)
    return systems


def score_coord_systems(
    member: MemberGeometry,
    grids: GridCatalog,
    tolerance: float = POSITION_TOLERANCE,
) -> Dict[str, int]:
    """Grid alignment score of the member for every candidate system.

    An endpoint earns one point when its local X matches an X grid line of
    the system and one when its local Y matches a Y grid line, so the
    maximum score is 4.
    """
    scores: Dict[str, int] = {}
    for coord_system in _candidate_systems(grids):
        system_grids = grids.for_coord_system(coord_system.name)
        score = 0
        for endpoint in (member.j1, member.j2):
            local = global_to_local(endpoint, coord_system)
            if any(abs(local.x - g.ordinate) < tolerance for g in system_grids.x):
                score += 1
            if any(abs(local.y - g.ordinate) < tolerance for g in system_grids.y):
                score += 1
        scores[coord_system.name] = score
    return scores


def resolve_coord_system(
    member: MemberGeometry,
    grids: Optional[GridCatalog],
    tolerance: float = POSITION_TOLERANCE,
) -> str:
    """Name of the best-fitting coordinate system for a member.

    The highest score wins. Equal non-zero scores prefer a non-GLOBAL
    system (the later declared one among several); a best score of zero
    always resolves to GLOBAL. Without declared systems the answer is GLOBAL.
    """
    if grids is None or not grids.coord_systems:
        return GLOBAL_COORD_SYSTEM

    best_system = GLOBAL_COORD_SYSTEM
    max_score = 0
    for name, score in score_coord_systems(member, grids, tolerance).items():
        if score > max_score or (score == max_score and score > 0 and name != GLOBAL_COORD_SYSTEM):
            max_score = score
            best_system = name

    if max_score == 0:
        return GLOBAL_COORD_SYSTEM

    if best_system != GLOBAL_COORD_SYSTEM:
        logger.debug(f"Member {member.name} resolved to {best_system} (score {max_score})")
    return best_system
