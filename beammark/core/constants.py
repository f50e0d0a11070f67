"""
Labeling Constants for BeamMark - Structural Beam Mark Assignment
"""

# Grid Matching Tolerances (model units, typically m)
TOLERANCE = 0.1              # Member center/extent counted as "on grid"
POSITION_TOLERANCE = 0.01    # Endpoint alignment used by the coordinate-system resolver
GEOMETRIC_TOLERANCE = 0.01   # Endpoint coincidence / point-on-segment for connectivity
DIRECTION_TOLERANCE = 0.01   # Raw axis-aligned test used by mirror matching

# Orientation
ANGLE_TOLERANCE = 2.0        # degrees from a local axis still counted as aligned

# Symmetry Detection and Mirror Matching
SYMMETRY_TOLERANCE = 0.5     # Member midpoint this close to the axis is "on axis"
MATCHING_TOLERANCE = 0.8     # Mirrored midpoint match distance
SYMMETRY_PASS_SCORE = 0.7    # Minimum fraction of mirrored members to accept an axis
SNAP_TOLERANCE = 0.5         # Detected axis snaps to a grid line within this distance
LENGTH_TOLERANCE = 1.0       # Length difference allowed during axis scoring

# Mirror pairing length rule: max(ratio * master_length, floor)
MIRROR_LENGTH_RATIO = 0.15
MIRROR_LENGTH_FLOOR = 0.5
MIRROR_LENGTH_WEIGHT = 0.5   # Weight of length difference in the pairing score

# Coordinate Systems
GLOBAL_COORD_SYSTEM = "GLOBAL"

# Secondary Beam Numbering
DEFAULT_SECONDARY_PREFIX = "b"
DEFAULT_HORIZONTAL_START = 1
UNLABELED_TAG = "UNLABELED"

# Floor Fingerprints
FINGERPRINT_PRECISION = 2

# Beam-like section prefixes (upper case)
BEAM_SECTION_PREFIXES = ("B", "G", "SB", "WB", "FB", "FGB", "FSB", "FWB")
SPECIAL_PREFIXES = ("WB", "FWB")
