"""
Grid model queries: nearest grid line, exact on-grid match, bracketing
grid lines and the numeric serial value of a grid line.
"""

import re
from typing import List, Optional, Sequence, Tuple

from beammark.core.config import UserGridConfig
from beammark.core.data_models import GridAxis, GridLine, Serial

_INTEGER_NAME = re.compile(r"^-?\d+$")


def nearest_grid(coordinate: float, grids: Sequence[GridLine]) -> Optional[GridLine]:
    """Grid line minimizing |coordinate - ordinate|; ties keep the first."""
    best: Optional[GridLine] = None
    best_diff = float("inf")
    for grid in grids:
        diff = abs(coordinate - grid.ordinate)
        if diff < best_diff:
            best = grid
            best_diff = diff
    return best


def grid_at(coordinate: float, grids: Sequence[GridLine], tolerance: float) -> Optional[GridLine]:
    """First grid line lying within ``tolerance`` of the coordinate."""
    for grid in grids:
        if abs(coordinate - grid.ordinate) < tolerance:
            return grid
    return None


def bracketing_grids(
    coordinate: float,
    grids: Sequence[GridLine],
) -> Tuple[Optional[GridLine], Optional[GridLine]]:
    """Adjacent grid lines strictly below and above a coordinate.

    Returns:
        (below, above); either is None past the ends of the grid
    """
    below: Optional[GridLine] = None
    above: Optional[GridLine] = None
    for grid in grids:
        if grid.ordinate < coordinate and (below is None or grid.ordinate > below.ordinate):
            below = grid
        elif grid.ordinate > coordinate and (above is None or grid.ordinate < above.ordinate):
            above = grid
    return below, above


def grids_strictly_inside(
    lower: float,
    upper: float,
    grids: Sequence[GridLine],
) -> List[GridLine]:
    return [g for g in grids if lower < g.ordinate < upper]


def grid_serial_value(
    grid: GridLine,
    axis_grids: Sequence[GridLine],
    axis: GridAxis,
    user_config: Optional[UserGridConfig] = None,
) -> Optional[Serial]:
    """Numeric value of a grid line used for span serials.

    Resolution order:
    1. User override (None override = skip, returns None)
    2. Secondary-type grid lines use their literal name
    3. Names that are whole integers parse to that integer
    4. Otherwise the 1-based position within ``axis_grids``

    Returns:
        int or str serial, or None when the grid is skipped or absent
    """
    if user_config is not None and user_config.has_override(axis, grid.name):
        return user_config.get(axis, grid.name)

    if grid.is_secondary:
        return grid.name

    if _INTEGER_NAME.match(grid.name) and str(int(grid.name)) == grid.name:
        return int(grid.name)

    for index, candidate in enumerate(axis_grids):
        if candidate.name == grid.name:
            return index + 1
    return None
