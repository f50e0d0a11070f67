# Plan geometry, coordinate transforms and grid queries
from .kernel import (
    angle_difference,
    beam_angle,
    distance,
    is_point_on_segment,
    point_to_segment_distance,
    segment_intersection,
    segment_intersects_rect,
    segments_intersect,
)
from .transform import global_to_local, local_bounds, local_center, local_to_global
from .grid import bracketing_grids, grid_at, grid_serial_value, nearest_grid
