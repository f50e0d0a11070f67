# Core data models, constants and configuration
from .data_models import (
    AxisDirection,
    CoordinateSystem,
    GridAxis,
    GridCatalog,
    GridLine,
    GridLineType,
    Member,
    MemberGeometry,
    Orientation,
    Point,
    PrimaryLabel,
    SecondaryLabel,
    StoryLabels,
    SymmetryAxis,
    compose_grid_name,
    normalize_joints,
    parse_grid_name,
)
from .config import LabelingConfig, SecondaryNumberingConfig, SymmetryConfig, UserGridConfig
from .constants import GLOBAL_COORD_SYSTEM, TOLERANCE
from .exceptions import BeamMarkError, InvalidLabelError
from .sections import FixedLabelRule, is_beam_section, is_secondary_section
