"""
Symmetry Engine - mirror axis detection and mirrored secondary numbering.

Detection scores candidate axes by the share of members whose mirror image
is matched by another member. Mirrored numbering labels the master half of
a floor with the chain numberer and copies each label to the best-matching
beam of the slave half.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

import numpy as np

from beammark.core.config import LabelingConfig, SymmetryConfig
from beammark.core.constants import (
    DIRECTION_TOLERANCE,
    MATCHING_TOLERANCE,
    MIRROR_LENGTH_FLOOR,
    MIRROR_LENGTH_RATIO,
    MIRROR_LENGTH_WEIGHT,
    SYMMETRY_TOLERANCE,
)
from beammark.core.data_models import (
    AxisDirection,
    GridCatalog,
    GridLine,
    Member,
    MemberGeometry,
    Point,
    SecondaryLabel,
    SymmetryAxis,
)
from beammark.engines.secondary_labeler import ChainNumberer

logger = logging.getLogger(__name__)


def _own(point: Point, direction: AxisDirection) -> float:
    return point.x if direction == AxisDirection.VERTICAL else point.y


def _cross(point: Point, direction: AxisDirection) -> float:
    return point.y if direction == AxisDirection.VERTICAL else point.x


def _axis_grids(grids: Optional[GridCatalog], direction: AxisDirection) -> List[GridLine]:
    # A vertical axis is a line of constant X, so it lines up with X grid lines
    if grids is None:
        return []
    return list(grids.x if direction == AxisDirection.VERTICAL else grids.y)


def mirror_point(point: Point, axis_value: float, direction: AxisDirection = AxisDirection.VERTICAL) -> Point:
    """Reflect a point across a vertical (x = a) or horizontal (y = a) axis."""
    if direction == AxisDirection.VERTICAL:
        return Point(2 * axis_value - point.x, point.y)
    return Point(point.x, 2 * axis_value - point.y)


def is_member_on_symmetry_axis(
    member: MemberGeometry,
    axis_value: float,
    tolerance: float = SYMMETRY_TOLERANCE,
    direction: AxisDirection = AxisDirection.VERTICAL,
) -> bool:
    """True when a member lies on or crosses the axis.

    A member is on the axis when its midpoint or either endpoint is within
    tolerance of it, or when its endpoints sit on opposite sides of it.
    """
    if abs(_own(member.center, direction) - axis_value) < tolerance:
        return True

    d1 = _own(member.j1, direction) - axis_value
    d2 = _own(member.j2, direction) - axis_value
    if (d1 < -tolerance and d2 > tolerance) or (d1 > tolerance and d2 < -tolerance):
        return True
    return abs(d1) < tolerance or abs(d2) < tolerance


@dataclass(frozen=True)
class AxisScore:
    """Score of one candidate axis."""
    value: float
    score: float
    matched: int
    total: int


class SymmetryDetector:
    """Scores candidate mirror axes for the members of one floor.

    Member midpoints and lengths are held as numpy arrays so every
    candidate is scored with one pairwise comparison.
    """

    def __init__(
        self,
        geometries: Sequence[MemberGeometry],
        direction: AxisDirection = AxisDirection.VERTICAL,
        config: Optional[SymmetryConfig] = None,
    ):
        self.geometries = list(geometries)
        self.direction = direction
        self.config = config or SymmetryConfig()

        self.own = np.array([_own(g.center, direction) for g in self.geometries], dtype=float)
        self.cross = np.array([_cross(g.center, direction) for g in self.geometries], dtype=float)
        self.lengths = np.array([g.length for g in self.geometries], dtype=float)

        n = len(self.geometries)
        tol = self.config.matching_tolerance
        cross_ok = np.abs(self.cross[:, None] - self.cross[None, :]) < tol
        length_ok = np.abs(self.lengths[:, None] - self.lengths[None, :]) < self.config.length_tolerance
        self._pair_ok = cross_ok & length_ok & ~np.eye(n, dtype=bool)

    def candidates(self, grids: Optional[GridCatalog] = None) -> List[float]:
        """Extent midpoint followed by grid ordinates strictly inside the extent."""
        if not self.geometries:
            return []
        coords = [_own(p, self.direction) for g in self.geometries for p in (g.j1, g.j2)]
        low, high = min(coords), max(coords)
        values = [(low + high) / 2]
        values.extend(g.ordinate for g in _axis_grids(grids, self.direction) if low < g.ordinate < high)
        return values

    def score(self, axis_value: float) -> AxisScore:
        """Share of off-axis members whose mirror image matches another member."""
        off_axis = np.abs(self.own - axis_value) >= self.config.symmetry_tolerance
        total = int(off_axis.sum())
        if total == 0:
            return AxisScore(axis_value, 0.0, 0, 0)

        mirrored = 2 * axis_value - self.own
        own_ok = np.abs(self.own[None, :] - mirrored[:, None]) < self.config.matching_tolerance
        has_match = (own_ok & self._pair_ok).any(axis=1) & off_axis
        matched = int(has_match.sum())
        return AxisScore(axis_value, matched / total, matched, total)

    def score_all(self, grids: Optional[GridCatalog] = None) -> List[AxisScore]:
        return [self.score(value) for value in self.candidates(grids)]

    def detect(self, grids: Optional[GridCatalog] = None) -> Optional[float]:
        """Best candidate axis, snapped to a nearby grid line, or None."""
        best: Optional[AxisScore] = None
        for candidate in self.score_all(grids):
            if candidate.score > (best.score if best else 0.0):
                best = candidate

        if best is None or best.score <= self.config.pass_score:
            logger.info(
                f"No {self.direction.value} symmetry axis detected "
                f"(best score {best.score if best else 0.0:.2f})"
            )
            return None

        value = best.value
        for grid in _axis_grids(grids, self.direction):
            if abs(grid.ordinate - value) < self.config.snap_tolerance:
                logger.debug(f"Snapping symmetry axis {value:.3f} to grid {grid.name}")
                value = grid.ordinate
                break

        logger.info(
            f"Detected {self.direction.value} symmetry axis at {value:.3f} "
            f"(score {best.score:.2f}, {best.matched}/{best.total} matched)"
        )
        return value


def _resolve_all(members: Sequence[Member], joints: Mapping[str, Point]) -> List[MemberGeometry]:
    return [g for g in (MemberGeometry.resolve(m, joints) for m in members) if g is not None]


def score_symmetry_axes(
    members: Sequence[Member],
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    direction: AxisDirection = AxisDirection.VERTICAL,
    config: Optional[SymmetryConfig] = None,
) -> List[AxisScore]:
    """Scores of every candidate axis, in candidate order."""
    return SymmetryDetector(_resolve_all(members, joints), direction, config).score_all(grids)


def detect_symmetry_axis(
    members: Sequence[Member],
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    direction: AxisDirection = AxisDirection.VERTICAL,
    config: Optional[SymmetryConfig] = None,
) -> Optional[float]:
    """Detect a mirror axis ordinate along one direction.

    Args:
        members: Members of the floor
        joints: Joint table
        grids: Grid catalog, for candidates and snapping
        direction: Axis direction to search
        config: Symmetry tolerances and pass score

    Returns:
        Axis ordinate, or None when no candidate passes
    """
    return SymmetryDetector(_resolve_all(members, joints), direction, config).detect(grids)


def detect_symmetry(
    members: Sequence[Member],
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    config: Optional[SymmetryConfig] = None,
) -> Optional[SymmetryAxis]:
    """Detect a vertical axis, falling back to a horizontal one."""
    for direction in (AxisDirection.VERTICAL, AxisDirection.HORIZONTAL):
        value = detect_symmetry_axis(members, joints, grids, direction, config)
        if value is not None:
            return SymmetryAxis(direction=direction, value=value)
    return None


def _global_orientation(geometry: MemberGeometry, tolerance: float = DIRECTION_TOLERANCE) -> Optional[str]:
    if abs(geometry.j1.y - geometry.j2.y) < tolerance:
        return "h"
    if abs(geometry.j1.x - geometry.j2.x) < tolerance:
        return "v"
    return None


@dataclass
class MirrorResult:
    """Labels from mirrored numbering of a master/slave pair."""
    labels: Dict[str, SecondaryLabel] = field(default_factory=dict)
    next_counter: int = 1
    matched: int = 0


class MirrorMatcher:
    """Pairs master-half beams with their mirror images in the slave half."""

    def __init__(
        self,
        axis_value: float,
        direction: AxisDirection = AxisDirection.VERTICAL,
        matching_tolerance: float = MATCHING_TOLERANCE,
        direction_tolerance: float = DIRECTION_TOLERANCE,
    ):
        self.axis_value = axis_value
        self.direction = direction
        self.matching_tolerance = matching_tolerance
        self.direction_tolerance = direction_tolerance

    def best_match(
        self,
        master: MemberGeometry,
        slaves: Sequence[MemberGeometry],
        taken: Set[str],
    ) -> Optional[MemberGeometry]:
        """Closest unmatched slave by position plus weighted length difference."""
        orientation = _global_orientation(master, self.direction_tolerance)
        if orientation is None or not slaves:
            return None

        target = mirror_point(master.center, self.axis_value, self.direction)
        mids = np.array([[s.center.x, s.center.y] for s in slaves], dtype=float)
        lengths = np.array([s.length for s in slaves], dtype=float)
        cross = np.array([_cross(s.center, self.direction) for s in slaves], dtype=float)
        eligible = np.array(
            [
                s.key not in taken and _global_orientation(s, self.direction_tolerance) == orientation
                for s in slaves
            ],
            dtype=bool,
        )

        dist = np.hypot(mids[:, 0] - target.x, mids[:, 1] - target.y)
        length_diff = np.abs(lengths - master.length)
        max_length_diff = max(master.length * MIRROR_LENGTH_RATIO, MIRROR_LENGTH_FLOOR)

        eligible &= np.abs(cross - _cross(master.center, self.direction)) < self.matching_tolerance
        eligible &= dist < self.matching_tolerance * 2
        eligible &= length_diff < max_length_diff
        if not eligible.any():
            return None

        scores = np.where(eligible, dist + MIRROR_LENGTH_WEIGHT * length_diff, np.inf)
        return slaves[int(np.argmin(scores))]


def match_and_label(
    master: Sequence[Member],
    slave: Sequence[Member],
    axis_value: float,
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    config: Optional[LabelingConfig] = None,
    start_counter: Optional[int] = None,
    direction: AxisDirection = AxisDirection.VERTICAL,
) -> MirrorResult:
    """Number the master half and copy labels to mirrored slave beams.

    Master beams, including those on the axis, are chain-numbered first.
    Each labeled off-axis master beam then claims its best slave match,
    which receives the same label. Slave beams left unmatched are numbered
    after the master sequence.

    Args:
        master: Secondary members of the master half
        slave: Secondary members of the slave half
        axis_value: Mirror axis ordinate
        joints: Joint table
        grids: Grid catalog, for orientation
        config: Labeling configuration
        start_counter: First number (default: configured horizontal start)
        direction: Mirror axis direction

    Returns:
        MirrorResult with labels for both halves
    """
    config = config or LabelingConfig()
    symmetry_tolerance = config.symmetry.symmetry_tolerance
    numberer = ChainNumberer(
        grids or GridCatalog(),
        config.secondary.prefix,
        config.reserved_serials,
        config.position_tolerance,
        config.angle_tolerance,
    )
    if start_counter is None:
        start_counter = config.secondary.effective_horizontal_start

    master_geoms = _resolve_all(master, joints)
    slave_geoms = _resolve_all(slave, joints)

    on_axis: List[MemberGeometry] = []
    master_off: List[MemberGeometry] = []
    slave_off: List[MemberGeometry] = []
    for geometry in master_geoms:
        target = on_axis if is_member_on_symmetry_axis(geometry, axis_value, symmetry_tolerance, direction) else master_off
        target.append(geometry)
    for geometry in slave_geoms:
        target = on_axis if is_member_on_symmetry_axis(geometry, axis_value, symmetry_tolerance, direction) else slave_off
        target.append(geometry)

    logger.info(
        f"Mirror numbering about {direction.value} axis {axis_value:.3f}: "
        f"{len(master_off)} master, {len(slave_off)} slave, {len(on_axis)} on axis"
    )

    chained = numberer.number(
        [g.member for g in master_off + on_axis],
        joints,
        start_counter,
        config.secondary.effective_vertical_start,
    )
    result = MirrorResult(labels=dict(chained.labels), next_counter=chained.next_counter)

    matcher = MirrorMatcher(axis_value, direction, config.symmetry.matching_tolerance, config.direction_tolerance)
    taken: Set[str] = set()
    for geometry in master_off:
        label = result.labels.get(geometry.key)
        if label is None or label.unlabeled:
            continue
        match = matcher.best_match(geometry, slave_off, taken)
        if match is None:
            continue
        taken.add(match.key)
        result.labels[match.key] = SecondaryLabel(new_label=label.new_label, is_diagonal=label.is_diagonal)
        result.matched += 1
        logger.debug(f"Mirrored {label.new_label}: {geometry.name} -> {match.name}")

    unmatched = [g.member for g in slave_off if g.key not in taken]
    if unmatched:
        trailing = numberer.number(unmatched, joints, result.next_counter)
        result.labels.update(trailing.labels)
        result.next_counter = trailing.next_counter

    logger.info(f"Mirror numbering matched {result.matched} slave beam(s), {len(unmatched)} numbered separately")
    return result
