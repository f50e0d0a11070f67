"""
Data Models for BeamMark - Structural Beam Mark Assignment
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .constants import GLOBAL_COORD_SYSTEM


Serial = Union[int, float, str]


class GridAxis(Enum):
    """Grid line axis within a coordinate system"""
    X = "X"
    Y = "Y"


class GridLineType(Enum):
    """Grid line classification from the analysis model"""
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"


class Orientation(Enum):
    """Member orientation relative to its resolved coordinate system"""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


class AxisDirection(Enum):
    """Symmetry axis direction in plan"""
    VERTICAL = "vertical"       # Axis is a line X = value
    HORIZONTAL = "horizontal"   # Axis is a line Y = value


@dataclass(frozen=True)
class Point:
    """Plan coordinate in the GLOBAL frame"""
    x: float
    y: float

    @classmethod
    def from_any(cls, value: Any) -> "Point":
        """Coerce a Point, (x, y) pair or {"x":..,"y":..} mapping."""
        if isinstance(value, Point):
            return value
        if isinstance(value, Mapping):
            return cls(float(value["x"]), float(value["y"]))
        x, y = value
        return cls(float(x), float(y))


def normalize_joints(joints: Mapping[str, Any]) -> Dict[str, Point]:
    """Convert a joint table of mixed coordinate shapes into Points."""
    return {name: Point.from_any(coords) for name, coords in joints.items()}


_GRID_NAME_PATTERN = re.compile(r"^([A-Za-z]*)(\d+)?")


@dataclass(frozen=True)
class GridName:
    """Parsed grid line name"""
    prefix: str
    num: int
    original: str


def parse_grid_name(name: Optional[str], strip_axis_prefix: bool = False) -> GridName:
    """Split a grid name into its letter prefix and number.

    Args:
        name: Grid name such as "A", "C12" or "X6"
        strip_axis_prefix: Remove a leading X/Y axis letter first (display names)

    Returns:
        GridName with ``original`` holding the (possibly stripped) name
    """
    if not name:
        return GridName(prefix="", num=0, original="")

    clean = name
    if strip_axis_prefix and len(name) > 1 and name[0] in "XYxy":
        clean = name[1:]

    match = _GRID_NAME_PATTERN.match(clean)
    return GridName(
        prefix=match.group(1) or "",
        num=int(match.group(2)) if match.group(2) else 0,
        original=clean,
    )


def compose_grid_name(prefix: str, num: int) -> str:
    """Inverse of parse_grid_name for letter prefixes and non-negative numbers."""
    return f"{prefix}{num}"


@dataclass(frozen=True)
class CoordinateSystem:
    """Named local frame: origin offset (ux, uy) and rotation in degrees.

    GLOBAL is the identity system and is always resolvable even when the
    model does not declare it.
    """
    name: str
    type: str = "CARTESIAN"
    ux: float = 0.0
    uy: float = 0.0
    angle: float = 0.0

    @classmethod
    def global_system(cls) -> "CoordinateSystem":
        return cls(name=GLOBAL_COORD_SYSTEM)

    @property
    def is_global(self) -> bool:
        return self.name == GLOBAL_COORD_SYSTEM


@dataclass(frozen=True)
class GridLine:
    """Named reference line of one axis in one coordinate system."""
    name: str
    axis: GridAxis
    ordinate: float
    coord_system: str = GLOBAL_COORD_SYSTEM
    line_type: GridLineType = GridLineType.PRIMARY
    bubble_location: Optional[str] = None

    @property
    def is_secondary(self) -> bool:
        return self.line_type == GridLineType.SECONDARY

    @property
    def display_name(self) -> str:
        """Name with a leading axis letter removed ("X6" -> "6")."""
        if len(self.name) > 1 and self.name[0].upper() == self.axis.value:
            return self.name[1:]
        return self.name


def display_grid_name(grid: GridLine) -> str:
    return grid.display_name


def _grid_sort_key(grid: GridLine) -> Tuple[int, str, float]:
    # GLOBAL first, then other systems alphabetically, then by ordinate
    is_other = 0 if grid.coord_system == GLOBAL_COORD_SYSTEM else 1
    return (is_other, grid.coord_system, grid.ordinate)


def _dedup_and_sort(grids: Iterable[GridLine]) -> List[GridLine]:
    by_name: Dict[str, GridLine] = {}
    for grid in grids:
        by_name[grid.name] = grid
    return sorted(by_name.values(), key=_grid_sort_key)


@dataclass
class GridCatalog:
    """Grid lines per axis plus declared coordinate systems.

    Attributes:
        x: Grid lines of the X axis (vertical lines), pre-sorted
        y: Grid lines of the Y axis (horizontal lines), pre-sorted
        coord_systems: Declared coordinate systems by name
    """
    x: List[GridLine] = field(default_factory=list)
    y: List[GridLine] = field(default_factory=list)
    coord_systems: Dict[str, CoordinateSystem] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        x: Iterable[GridLine] = (),
        y: Iterable[GridLine] = (),
        coord_systems: Optional[Iterable[CoordinateSystem]] = None,
    ) -> "GridCatalog":
        """Build a catalog deduplicated by name and sorted the parser's way."""
        systems = {cs.name: cs for cs in (coord_systems or [])}
        return cls(x=_dedup_and_sort(x), y=_dedup_and_sort(y), coord_systems=systems)

    def axis(self, axis: GridAxis) -> List[GridLine]:
        return self.x if axis == GridAxis.X else self.y

    def coord_system(self, name: str) -> CoordinateSystem:
        """Resolve a coordinate system by name; unknown names map to GLOBAL."""
        if name != GLOBAL_COORD_SYSTEM and name in self.coord_systems:
            return self.coord_systems[name]
        return CoordinateSystem.global_system()

    def for_coord_system(self, name: str) -> "GridCatalog":
        """Subset of grid lines belonging to one coordinate system."""
        return GridCatalog(
            x=[g for g in self.x if g.coord_system == name],
            y=[g for g in self.y if g.coord_system == name],
            coord_systems=self.coord_systems,
        )

    @property
    def is_empty(self) -> bool:
        return not self.x and not self.y


@dataclass(frozen=True)
class Member:
    """Beam-like frame member of one story.

    Identity for deduplication is (story, name, joint1, joint2).
    """
    name: str
    prop: str
    joint1: str
    joint2: str
    story: str = ""

    @property
    def key(self) -> str:
        return f"{self.name}|{self.joint1}|{self.joint2}"

    @property
    def story_key(self) -> str:
        return f"{self.story}|{self.name}|{self.joint1}|{self.joint2}"


@dataclass(frozen=True)
class MemberGeometry:
    """Member with its endpoint coordinates resolved from the joint table."""
    member: Member
    j1: Point
    j2: Point

    @classmethod
    def resolve(cls, member: Member, joints: Mapping[str, Any]) -> Optional["MemberGeometry"]:
        """Return None when either joint is missing from the table.

        Joint values may be Points, (x, y) pairs or {"x": .., "y": ..} mappings.
        """
        j1 = joints.get(member.joint1)
        j2 = joints.get(member.joint2)
        if j1 is None or j2 is None:
            return None
        return cls(member=member, j1=Point.from_any(j1), j2=Point.from_any(j2))

    @property
    def name(self) -> str:
        return self.member.name

    @property
    def key(self) -> str:
        return self.member.key

    @property
    def min_x(self) -> float:
        return min(self.j1.x, self.j2.x)

    @property
    def max_x(self) -> float:
        return max(self.j1.x, self.j2.x)

    @property
    def min_y(self) -> float:
        return min(self.j1.y, self.j2.y)

    @property
    def max_y(self) -> float:
        return max(self.j1.y, self.j2.y)

    @property
    def center(self) -> Point:
        return Point((self.j1.x + self.j2.x) / 2, (self.j1.y + self.j2.y) / 2)

    @property
    def length(self) -> float:
        return math.hypot(self.j2.x - self.j1.x, self.j2.y - self.j1.y)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned extent"""
    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass(frozen=True)
class PrimaryLabel:
    """Grid-based label parts for a primary (main) beam.

    Attributes:
        serial: Span serial (int, or grid name for Secondary-type grids)
        primary_grid_name: Display name of the grid the beam runs along
        sub_grid_marker: Lowercase letter when between grid lines, else ""
        is_diagonal: True for members labeled in a rotated system
        is_vertical: True for members along the local Y axis
        is_along_x: Diagonal members only, True when closer to local X
        coord_system: Resolved coordinate system name
    """
    serial: Serial
    primary_grid_name: str
    sub_grid_marker: str = ""
    is_diagonal: bool = False
    is_vertical: bool = False
    is_along_x: Optional[bool] = None
    coord_system: str = GLOBAL_COORD_SYSTEM


@dataclass(frozen=True)
class SecondaryLabel:
    """Chain-based label for a secondary beam."""
    new_label: str
    is_diagonal: bool = False
    unlabeled: bool = False


@dataclass(frozen=True)
class SymmetryAxis:
    """Mirror axis in plan: X = value (vertical) or Y = value (horizontal)."""
    direction: AxisDirection
    value: float

    @classmethod
    def from_two_points(cls, p1: Point, p2: Point) -> "SymmetryAxis":
        """Derive an axis from two picked points.

        A pick wider than it is tall gives a horizontal axis through the
        mid-Y; otherwise a vertical axis through the mid-X.

        Raises:
            ValueError: If the two points coincide
        """
        dx = abs(p2.x - p1.x)
        dy = abs(p2.y - p1.y)
        if dx == 0 and dy == 0:
            raise ValueError("Symmetry axis needs two distinct points")
        if dx > dy:
            return cls(AxisDirection.HORIZONTAL, (p1.y + p2.y) / 2)
        return cls(AxisDirection.VERTICAL, (p1.x + p2.x) / 2)


@dataclass
class StoryLabels:
    """Labels produced for one story.

    Attributes:
        story: Story name
        primary: Member key -> PrimaryLabel
        secondary: Member key -> SecondaryLabel
        fixed: Member key -> label from fixed or WB/FWB section rules
        symmetry_axis: Axis used for mirrored numbering, if any
    """
    story: str
    primary: Dict[str, PrimaryLabel] = field(default_factory=dict)
    secondary: Dict[str, SecondaryLabel] = field(default_factory=dict)
    fixed: Dict[str, str] = field(default_factory=dict)
    symmetry_axis: Optional[SymmetryAxis] = None

    @property
    def total_labeled(self) -> int:
        return len(self.primary) + len(self.secondary) + len(self.fixed)
