"""
Plan geometry primitives for beam labeling.

Pure functions over GLOBAL plan points: distances, point-on-segment tests,
member angle and segment intersection. None of them holds state.
"""

import math
from typing import Optional, Tuple

from beammark.core.data_models import Point


def distance(p1: Optional[Point], p2: Optional[Point]) -> float:
    """Euclidean distance; infinite when either point is missing."""
    if p1 is None or p2 is None:
        return math.inf
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def is_point_on_segment(point: Point, seg_p1: Point, seg_p2: Point, tolerance: float) -> bool:
    """Check whether ``point`` lies on segment seg_p1-seg_p2.

    Uses the distance-sum test: |P-A| + |P-B| equals |A-B| within tolerance.
    A degenerate segment shorter than the tolerance behaves like a point.
    """
    seg_length = distance(seg_p1, seg_p2)
    if seg_length < tolerance:
        return distance(point, seg_p1) < tolerance
    dist_sum = distance(point, seg_p1) + distance(point, seg_p2)
    return abs(dist_sum - seg_length) < tolerance


def beam_angle(j1: Point, j2: Point) -> float:
    """Member direction in degrees [0, 360), counter-clockwise from +X."""
    angle = math.degrees(math.atan2(j2.y - j1.y, j2.x - j1.x))
    if angle < 0:
        angle += 360.0
    return angle


def normalize_angle(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    normalized = angle % 360.0
    if normalized < 0:
        normalized += 360.0
    return normalized


def angle_difference(angle1: float, angle2: float) -> float:
    """Smallest absolute difference between two directions, in [0, 180]."""
    diff = abs(normalize_angle(angle1) - normalize_angle(angle2))
    return min(diff, 360.0 - diff)


def point_to_segment_distance(point: Point, seg_p1: Point, seg_p2: Point) -> float:
    """Shortest distance from a point to a segment (clamped projection)."""
    cx = seg_p2.x - seg_p1.x
    cy = seg_p2.y - seg_p1.y
    length_sq = cx * cx + cy * cy

    param = -1.0
    if length_sq != 0:
        param = ((point.x - seg_p1.x) * cx + (point.y - seg_p1.y) * cy) / length_sq

    if param < 0:
        nearest = seg_p1
    elif param > 1:
        nearest = seg_p2
    else:
        nearest = Point(seg_p1.x + param * cx, seg_p1.y + param * cy)

    return distance(point, nearest)


def segment_intersection(
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point,
) -> Optional[Tuple[float, float]]:
    """Intersection point of segments p1-p2 and p3-p4.

    Uses the parametric form; parallel or collinear segments return None.

    Returns:
        (x, y) of the intersection, or None when the segments do not meet
    """
    denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    if abs(denom) < 1e-10:
        return None

    ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / denom
    ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / denom

    if 0 <= ua <= 1 and 0 <= ub <= 1:
        return (p1.x + ua * (p2.x - p1.x), p1.y + ua * (p2.y - p1.y))
    return None


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    return segment_intersection(p1, p2, p3, p4) is not None


def segment_intersects_rect(
    p1: Point,
    p2: Point,
    corner: Point,
    width: float,
    height: float,
) -> bool:
    """Check whether a segment touches an axis-aligned rectangle.

    ``width`` and ``height`` may be negative (rectangle dragged up/left).
    """
    left = min(corner.x, corner.x + width)
    right = max(corner.x, corner.x + width)
    bottom = min(corner.y, corner.y + height)
    top = max(corner.y, corner.y + height)

    for p in (p1, p2):
        if left <= p.x <= right and bottom <= p.y <= top:
            return True

    corners = [
        Point(left, bottom),
        Point(right, bottom),
        Point(right, top),
        Point(left, top),
    ]
    return any(
        segments_intersect(p1, p2, corners[i], corners[(i + 1) % 4])
        for i in range(4)
    )
