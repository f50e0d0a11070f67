"""
Labeling Configuration Module for BeamMark.

Tolerances, symmetry settings, secondary numbering starts and user grid
overrides are explicit dataclass objects passed into every engine call.
Nothing is read from module-level state while labeling.

Usage:
    config = LabelingConfig.from_env()
    labels = generate_primary_labels(members, joints, grids, config)
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Optional, Union

from .constants import (
    ANGLE_TOLERANCE,
    DEFAULT_HORIZONTAL_START,
    DEFAULT_SECONDARY_PREFIX,
    DIRECTION_TOLERANCE,
    GEOMETRIC_TOLERANCE,
    LENGTH_TOLERANCE,
    MATCHING_TOLERANCE,
    POSITION_TOLERANCE,
    SNAP_TOLERANCE,
    SYMMETRY_PASS_SCORE,
    SYMMETRY_TOLERANCE,
    TOLERANCE,
)
from .data_models import GridAxis, GridLine, SymmetryAxis

logger = logging.getLogger(__name__)

SerialOverride = Optional[Union[int, str]]

SKIP_INPUTS = ("", "-", "skip")


def parse_serial_input(text: Optional[str]) -> SerialOverride:
    """Interpret a user-typed grid serial.

    Blank, "-" and "skip" mean the grid is skipped (None). Digit strings
    become integers; anything else is kept as a string serial.
    """
    if text is None:
        return None
    value = text.strip()
    if value.lower() in SKIP_INPUTS:
        return None
    if value.lstrip("-").isdigit():
        return int(value)
    return value


@dataclass
class UserGridConfig:
    """Per-grid serial overrides keyed by axis then grid name.

    A grid name mapped to None is skipped: members whose serial comes from
    that grid are left unlabeled.
    """

    x: Dict[str, SerialOverride] = field(default_factory=dict)
    y: Dict[str, SerialOverride] = field(default_factory=dict)

    def for_axis(self, axis: GridAxis) -> Dict[str, SerialOverride]:
        return self.x if axis == GridAxis.X else self.y

    def has_override(self, axis: GridAxis, grid_name: str) -> bool:
        return grid_name in self.for_axis(axis)

    def get(self, axis: GridAxis, grid_name: str) -> SerialOverride:
        return self.for_axis(axis).get(grid_name)

    def set(self, axis: GridAxis, grid_name: str, value: SerialOverride) -> None:
        self.for_axis(axis)[grid_name] = value

    def auto_increment(
        self,
        axis: GridAxis,
        grids: Iterable[GridLine],
        start_name: str,
        start_value: int,
    ) -> None:
        """Number ``start_name`` and every following grid consecutively.

        Setting A=1 on an axis [A, B, C] assigns B=2 and C=3.

        Raises:
            ValueError: If start_name is not one of the grids
        """
        names = [g.name for g in grids]
        if start_name not in names:
            raise ValueError(f"Unknown grid line: {start_name}")
        overrides = self.for_axis(axis)
        for offset, name in enumerate(names[names.index(start_name):]):
            overrides[name] = start_value + offset


@dataclass
class SymmetryConfig:
    """Symmetry detection and mirror matching settings.

    Attributes:
        symmetry_tolerance: Midpoint distance from the axis counted as on-axis
        matching_tolerance: Mirrored midpoint match tolerance
        pass_score: Minimum mirrored fraction for an axis to be accepted
        snap_tolerance: Detected axis snaps to a grid line within this distance
        length_tolerance: Length difference allowed while scoring axes
    """

    symmetry_tolerance: float = SYMMETRY_TOLERANCE
    matching_tolerance: float = MATCHING_TOLERANCE
    pass_score: float = SYMMETRY_PASS_SCORE
    snap_tolerance: float = SNAP_TOLERANCE
    length_tolerance: float = LENGTH_TOLERANCE

    def __post_init__(self):
        """Validate configuration after initialization."""
        for name in ("symmetry_tolerance", "matching_tolerance", "snap_tolerance", "length_tolerance"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not 0 < self.pass_score <= 1:
            raise ValueError("pass_score must be in (0, 1]")


@dataclass
class SecondaryNumberingConfig:
    """Secondary beam numbering settings.

    Attributes:
        prefix: Label prefix (e.g. "b" gives b1, b2-1)
        use_custom_start: Apply horizontal_start / vertical_start
        horizontal_start: First number for horizontal runs
        vertical_start: First number for vertical runs (None = decade round-up)
    """

    prefix: str = DEFAULT_SECONDARY_PREFIX
    use_custom_start: bool = False
    horizontal_start: int = DEFAULT_HORIZONTAL_START
    vertical_start: Optional[int] = None

    def __post_init__(self):
        if not self.prefix:
            raise ValueError("Secondary label prefix cannot be empty")
        if self.horizontal_start < 1:
            raise ValueError("horizontal_start must be >= 1")
        if self.vertical_start is not None and self.vertical_start < 1:
            raise ValueError("vertical_start must be >= 1")

    @property
    def effective_horizontal_start(self) -> int:
        return self.horizontal_start if self.use_custom_start else DEFAULT_HORIZONTAL_START

    @property
    def effective_vertical_start(self) -> Optional[int]:
        return self.vertical_start if self.use_custom_start else None


def normalize_reserved_serials(tokens: Iterable[str]) -> FrozenSet[str]:
    """Lower-case the prefix of "prefix:number" tokens."""
    normalized = set()
    for token in tokens:
        prefix, sep, number = token.partition(":")
        normalized.add(f"{prefix.lower()}{sep}{number.strip()}")
    return frozenset(normalized)


@dataclass
class LabelingConfig:
    """Beam labeling configuration.

    Attributes:
        tolerance: On-grid tolerance for centers and extents
        position_tolerance: Endpoint-on-grid tolerance for resolver scoring
        geometric_tolerance: Endpoint coincidence tolerance for connectivity
        direction_tolerance: Raw axis-aligned test for mirror matching
        angle_tolerance: Degrees from a local axis still counted as aligned
        symmetry: Symmetry detection / matching settings
        secondary: Secondary numbering settings
        mirror_mode: Number secondary beams as mirrored halves
        symmetry_axis: Explicit mirror axis (None = derive from geometry)
        user_grid_config: Per-grid serial overrides
        reserved_serials: "prefix:number" tokens skipped by auto-numbering
    """

    tolerance: float = TOLERANCE
    position_tolerance: float = POSITION_TOLERANCE
    geometric_tolerance: float = GEOMETRIC_TOLERANCE
    direction_tolerance: float = DIRECTION_TOLERANCE
    angle_tolerance: float = ANGLE_TOLERANCE
    symmetry: SymmetryConfig = field(default_factory=SymmetryConfig)
    secondary: SecondaryNumberingConfig = field(default_factory=SecondaryNumberingConfig)
    mirror_mode: bool = False
    symmetry_axis: Optional[SymmetryAxis] = None
    user_grid_config: Optional[UserGridConfig] = None
    reserved_serials: FrozenSet[str] = frozenset()

    def __post_init__(self):
        """Validate configuration after initialization."""
        for name in (
            "tolerance",
            "position_tolerance",
            "geometric_tolerance",
            "direction_tolerance",
            "angle_tolerance",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        self.reserved_serials = normalize_reserved_serials(self.reserved_serials)

    def with_reserved_serials(self, reserved: Iterable[str]) -> "LabelingConfig":
        """Copy of this config with a different reserved-serial set."""
        return replace(self, reserved_serials=frozenset(reserved))

    @classmethod
    def from_env(cls) -> "LabelingConfig":
        """Load configuration overrides from environment variables.

        Environment Variables:
            BEAMMARK_TOLERANCE: On-grid tolerance
            BEAMMARK_SYMMETRY_TOLERANCE: On-axis tolerance
            BEAMMARK_MATCHING_TOLERANCE: Mirror matching tolerance
            BEAMMARK_SYMMETRY_PASS_SCORE: Axis acceptance score
            BEAMMARK_SECONDARY_PREFIX: Secondary label prefix
            BEAMMARK_MIRROR_MODE: Mirrored secondary numbering (true/false)

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        symmetry = SymmetryConfig(
            symmetry_tolerance=_env_float("BEAMMARK_SYMMETRY_TOLERANCE", SYMMETRY_TOLERANCE),
            matching_tolerance=_env_float("BEAMMARK_MATCHING_TOLERANCE", MATCHING_TOLERANCE),
            pass_score=_env_float("BEAMMARK_SYMMETRY_PASS_SCORE", SYMMETRY_PASS_SCORE),
        )
        secondary = SecondaryNumberingConfig(
            prefix=os.getenv("BEAMMARK_SECONDARY_PREFIX", DEFAULT_SECONDARY_PREFIX),
        )
        mirror_mode = os.getenv("BEAMMARK_MIRROR_MODE", "false").lower() in ("1", "true", "yes")

        config = cls(
            tolerance=_env_float("BEAMMARK_TOLERANCE", TOLERANCE),
            symmetry=symmetry,
            secondary=secondary,
            mirror_mode=mirror_mode,
        )
        logger.info(
            f"Labeling config loaded: tolerance={config.tolerance}, "
            f"mirror_mode={config.mirror_mode}, prefix={secondary.prefix}"
        )
        return config


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid {name}: {raw!r} is not a number")
