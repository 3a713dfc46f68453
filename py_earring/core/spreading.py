"""
Even spreading of sites by pairwise inverse-square repulsion.

Every pair of sites pushes apart with a strength proportional to
``1 / distance**2``. Displacements are accumulated for all sites first and
then applied, each move being accepted only when the new position stays
inside the constraint polygon.
"""

from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import structlog

from ..config.design_settings import SpreadSettings
from .geometry import Point, Polygon, bounding_box_area, is_point_inside_polygon

logger = structlog.get_logger()

# Squared distances are floored here so coincident sites do not blow up
MIN_DISTANCE_SQUARED = 1e-9


class SpreadResult(NamedTuple):
    """Outcome of a spreading run."""
    sites: List[Point]
    moved: bool
    iterations: int


def select_main_polygon(polygons: Sequence[Polygon]) -> Optional[Polygon]:
    """Pick the polygon with the largest bounding-box area."""
    valid = [p for p in polygons if p is not None and len(p) >= 3]
    if not valid:
        return None
    return max(valid, key=bounding_box_area)


def repulsion_displacements(points: np.ndarray, step_size: float, max_step: float) -> np.ndarray:
    """
    Net repulsive displacement of every point.

    Args:
        points: (n, 2) array of positions
        step_size: Force scale, displacement is step_size / distance**2 per pair
        max_step: Upper bound on the length of any single displacement

    Returns:
        (n, 2) array of displacements
    """
    diff = points[:, None, :] - points[None, :, :]
    dist_sq = np.maximum(np.einsum("ijk,ijk->ij", diff, diff), MIN_DISTANCE_SQUARED)
    np.fill_diagonal(dist_sq, np.inf)

    dist = np.sqrt(dist_sq)
    magnitude = step_size / dist_sq
    displacement = (diff / dist[..., None] * magnitude[..., None]).sum(axis=1)

    lengths = np.linalg.norm(displacement, axis=1)
    too_long = lengths > max_step
    if np.any(too_long):
        displacement[too_long] *= (max_step / lengths[too_long])[:, None]
    return displacement


def spread_points(sites: Sequence[Point], boundary_polygons: Sequence[Polygon],
                  settings: Optional[SpreadSettings] = None) -> SpreadResult:
    """
    Relax *sites* apart while keeping them inside the main boundary polygon.

    Stops early once no site moves more than ``settings.tolerance`` in an
    iteration (after ``settings.min_iterations``), otherwise after
    ``settings.iterations``. With fewer than two sites or no usable boundary
    polygon the sites are returned unchanged.

    Args:
        sites: Current site positions
        boundary_polygons: Reconstructed silhouette polygons
        settings: Relaxation parameters

    Returns:
        SpreadResult with the new positions and whether any site moved
    """
    settings = settings or SpreadSettings()
    original = [Point(float(s[0]), float(s[1])) for s in sites]

    constraint = select_main_polygon(boundary_polygons)
    if len(original) < 2 or constraint is None:
        logger.info("Spreading skipped", sites=len(original), has_boundary=constraint is not None)
        return SpreadResult(original, False, 0)

    points = np.asarray(original, dtype=float)
    start = points.copy()
    iterations = 0

    for iteration in range(settings.iterations):
        iterations = iteration + 1
        displacement = repulsion_displacements(points, settings.step_size, settings.max_step)

        largest_move = 0.0
        for i in range(len(points)):
            step = float(np.linalg.norm(displacement[i]))
            if step <= settings.tolerance:
                continue
            candidate = points[i] + displacement[i]
            if is_point_inside_polygon((candidate[0], candidate[1]), constraint):
                points[i] = candidate
                largest_move = max(largest_move, step)

        if iterations >= settings.min_iterations and largest_move <= settings.tolerance:
            break

    moved = bool(np.any(np.linalg.norm(points - start, axis=1) > settings.tolerance))
    logger.info("Spreading finished", sites=len(points), iterations=iterations, moved=moved)

    if not moved:
        return SpreadResult(original, False, iterations)
    return SpreadResult([Point(float(x), float(y)) for x, y in points], True, iterations)
