"""Clipped Voronoi tessellation of user sites.

The Voronoi construction itself comes from ``scipy.spatial.Voronoi``. This
module only adapts it: it builds the clip rectangle around the sites and
turns scipy's regions into one ordered, finite polygon per site.

Clipping uses the reflection trick: every site is mirrored across each of
the four rectangle edges. The regions of the original sites in the enlarged
diagram are then finite and coincide with their cells clipped to the
rectangle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import structlog
from scipy.spatial import QhullError, Voronoi

from .geometry import Point, Polygon, dedupe_consecutive

logger = structlog.get_logger()

# Default distance between the sites' bounding box and the clip rectangle
DEFAULT_CLIP_MARGIN = 50.0


class ClipBounds(NamedTuple):
    """Axis-aligned clip rectangle."""
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin


class TessellationFailure(str, Enum):
    """Reasons a tessellation could not be computed."""

    TOO_FEW_SITES = "too_few_sites"
    DEGENERATE_INPUT = "degenerate_input"
    QHULL_ERROR = "qhull_error"


@dataclass
class TessellationResult:
    """Per-site clipped cells, or the reason there are none.

    ``cells[i]`` belongs to ``sites[i]``; it is None when the site has no
    usable cell (for example a duplicate site).
    """
    cells: List[Optional[Polygon]] = field(default_factory=list)
    failure: Optional[TessellationFailure] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(cls, failure: TessellationFailure, message: str = "") -> "TessellationResult":
        return cls(cells=[], failure=failure, message=message)


class Tessellator(ABC):
    """Capability that computes per-site Voronoi cells clipped to a rectangle."""

    @abstractmethod
    def compute_clipped_cells(self, sites: Sequence[Point], bounds: ClipBounds) -> TessellationResult:
        """Return one clipped cell (or None) per site, in site order."""


def compute_clip_bounds(sites: Sequence[Point], margin: float = DEFAULT_CLIP_MARGIN) -> ClipBounds:
    """
    Inflate the sites' bounding box by *margin* on every side.

    The margin pushes the infinite Voronoi edges of hull sites out to the
    rectangle, so that only genuinely unbounded cells touch it.

    Args:
        sites: Site coordinates (at least one)
        margin: Distance added on every side

    Returns:
        Clip rectangle
    """
    pts = np.asarray(sites, dtype=float)
    if pts.size == 0:
        raise ValueError("Cannot compute clip bounds without sites")

    xmin, ymin = pts.min(axis=0)
    xmax, ymax = pts.max(axis=0)
    return ClipBounds(float(xmin - margin), float(ymin - margin),
                      float(xmax + margin), float(ymax + margin))


def mirror_sites(points: np.ndarray, bounds: ClipBounds) -> np.ndarray:
    """Reflect *points* across the four edges of *bounds*."""
    left = points.copy()
    left[:, 0] = 2 * bounds.xmin - points[:, 0]
    right = points.copy()
    right[:, 0] = 2 * bounds.xmax - points[:, 0]
    bottom = points.copy()
    bottom[:, 1] = 2 * bounds.ymin - points[:, 1]
    top = points.copy()
    top[:, 1] = 2 * bounds.ymax - points[:, 1]
    return np.vstack([left, right, bottom, top])


def order_counter_clockwise(vertices: np.ndarray) -> np.ndarray:
    """Sort the vertices of a convex polygon counter-clockwise around their mean."""
    center = vertices.mean(axis=0)
    angles = np.arctan2(vertices[:, 1] - center[1], vertices[:, 0] - center[0])
    return vertices[np.argsort(angles)]


class ScipyVoronoiTessellator(Tessellator):
    """Tessellator backed by ``scipy.spatial.Voronoi`` (Qhull)."""

    def __init__(self, qhull_options: Optional[str] = None):
        self.qhull_options = qhull_options

    def compute_clipped_cells(self, sites: Sequence[Point], bounds: ClipBounds) -> TessellationResult:
        n_sites = len(sites)
        if n_sites == 0:
            return TessellationResult.failed(TessellationFailure.TOO_FEW_SITES, "No sites to tessellate")

        points = np.asarray(sites, dtype=float).reshape(n_sites, 2)
        if not np.all(np.isfinite(points)):
            return TessellationResult.failed(TessellationFailure.DEGENERATE_INPUT,
                                             "Site coordinates must be finite")
        if bounds.width <= 0 or bounds.height <= 0:
            return TessellationResult.failed(TessellationFailure.DEGENERATE_INPUT,
                                             f"Empty clip rectangle: {tuple(bounds)}")

        inside = ((points[:, 0] > bounds.xmin) & (points[:, 0] < bounds.xmax) &
                  (points[:, 1] > bounds.ymin) & (points[:, 1] < bounds.ymax))
        if not np.all(inside):
            return TessellationResult.failed(TessellationFailure.DEGENERATE_INPUT,
                                             "All sites must lie strictly inside the clip rectangle")

        all_points = np.vstack([points, mirror_sites(points, bounds)])
        try:
            vor = Voronoi(all_points, qhull_options=self.qhull_options)
        except (QhullError, ValueError) as e:
            logger.warning("Voronoi computation failed", sites=n_sites, error=str(e))
            return TessellationResult.failed(TessellationFailure.QHULL_ERROR, str(e))

        logger.debug("Voronoi diagram calculated",
                     sites=n_sites, vertices=len(vor.vertices), ridges=len(vor.ridge_points))

        cells: List[Optional[Polygon]] = []
        claimed = set()
        for i in range(n_sites):
            # Coincident sites share one region; only the first keeps it
            region_idx = int(vor.point_region[i])
            if region_idx in claimed:
                logger.warning("Duplicate site has no cell of its own", site=i)
                cells.append(None)
                continue
            claimed.add(region_idx)
            cells.append(self._cell_polygon(vor, i, bounds))

        return TessellationResult(cells=cells)

    @staticmethod
    def _cell_polygon(vor: Voronoi, index: int, bounds: ClipBounds) -> Optional[Polygon]:
        region_idx = vor.point_region[index]
        if region_idx < 0 or region_idx >= len(vor.regions):
            return None

        region = vor.regions[region_idx]
        if not region or -1 in region or len(region) < 3:
            return None

        vertices = order_counter_clockwise(vor.vertices[region])
        # Qhull places the clipped vertices a hair off the rectangle
        vertices[:, 0] = np.clip(vertices[:, 0], bounds.xmin, bounds.xmax)
        vertices[:, 1] = np.clip(vertices[:, 1], bounds.ymin, bounds.ymax)

        polygon = dedupe_consecutive([Point(float(x), float(y)) for x, y in vertices])
        return polygon if len(polygon) >= 3 else None
