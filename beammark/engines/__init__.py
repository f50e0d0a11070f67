"""
Labeling engines for BeamMark

Coordinate-system resolution, orientation, primary grid labels, building
components, symmetry and secondary chain numbering, standard floors.
"""

from beammark.engines.coord_resolver import resolve_coord_system, score_coord_systems
from beammark.engines.orientation import AnalyzedMember, analyze_members, classify_orientation
from beammark.engines.primary_labeler import PrimaryLabeler, generate_primary_labels
from beammark.engines.connectivity import component_bounds, find_components
from beammark.engines.secondary_labeler import (
    ChainNumberer,
    ChainResult,
    next_decade_start,
    number_chain,
    update_sequential_labels,
)
from beammark.engines.symmetry import (
    MirrorMatcher,
    SymmetryDetector,
    detect_symmetry,
    detect_symmetry_axis,
    is_member_on_symmetry_axis,
    match_and_label,
    mirror_point,
    score_symmetry_axes,
)
from beammark.engines.floor_groups import (
    StandardFloorIndex,
    floor_fingerprint,
    group_standard_floors,
)
from beammark.engines.floor_labeler import (
    generate_secondary_labels,
    label_building,
    label_story,
    propagate_labels,
    story_keyed_labels,
)
