"""
Geometry pipeline and the interactive design session.

``generate_geometry`` runs the whole pipeline for one set of sites:
tessellate, classify, shrink, reconstruct the silhouette, place the hole and
round corners. ``DesignSession`` owns the mutable design state and reruns the
pipeline after every change.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

import structlog

from ..config.design_settings import (ROUNDING_ONLY_FIELDS, DesignParameters,
                                      SpreadSettings, SVGExportSettings)
from .boundary import extract_boundary
from .classification import classify_cells
from .geometry import Point, Polygon, offset_polygon, to_point
from .holes import Hole, build_hole_polygon
from .rounding import PathCommand, round_polygon
from .spreading import spread_points
from .tessellation import ScipyVoronoiTessellator, Tessellator, compute_clip_bounds

logger = structlog.get_logger()

# Fewer sites than this cannot produce an interior cell
MIN_SITES = 3

# Distance within which a pointer position picks an existing site
SITE_HIT_RADIUS = 6.0


class PolygonRole(str, Enum):
    """Fill role of a final polygon."""

    CELL = "cell"
    HOLE = "hole"


class InteractionMode(str, Enum):
    """What a click on the canvas does."""

    ADD_SITES = "add_sites"
    PLACE_HOLE = "place_hole"


class ShapePolygon(NamedTuple):
    points: Polygon
    role: PolygonRole


class SessionLimitError(ValueError):
    """Raised when a session would exceed its configured site limit."""


@dataclass
class GeometryResult:
    """Output of one pipeline run.

    ``final_polygons`` are the shrunk interior cells followed by the hole, if
    any. ``shadow_polygons`` are the exterior cells, kept for display only.
    ``interior_cells`` are the unshrunk interior cells.
    """
    final_polygons: List[ShapePolygon] = field(default_factory=list)
    shadow_polygons: List[Polygon] = field(default_factory=list)
    boundary_polygons: List[Polygon] = field(default_factory=list)
    interior_cells: List[Polygon] = field(default_factory=list)
    display_commands: List[List[PathCommand]] = field(default_factory=list)
    boundary_commands: List[List[PathCommand]] = field(default_factory=list)
    hole_included: bool = False
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: Optional[str] = None) -> "GeometryResult":
        return cls(error=error)

    @property
    def is_empty(self) -> bool:
        return not self.final_polygons


def round_result(result: GeometryResult, corner_radius: float) -> GeometryResult:
    """
    Rebuild the rounded path commands of *result* for a new corner radius.

    Cells and the silhouette are rounded; the hole is already a smooth circle
    and is emitted with sharp corners. Polygons whose rounding degenerates
    are skipped.
    """
    display = []
    for shape in result.final_polygons:
        radius = corner_radius if shape.role == PolygonRole.CELL else 0.0
        commands = round_polygon(shape.points, radius)
        if commands:
            display.append(commands)

    boundary = [cmds for cmds in (round_polygon(p, corner_radius) for p in result.boundary_polygons) if cmds]
    return replace(result, display_commands=display, boundary_commands=boundary)


def generate_geometry(sites: Sequence[Point], parameters: DesignParameters,
                      hole_position: Optional[Point] = None,
                      tessellator: Optional[Tessellator] = None) -> GeometryResult:
    """
    Run the full geometry pipeline.

    Any failure yields an empty result rather than a partially built one.

    Args:
        sites: Site positions
        parameters: Gap width, hole diameter, corner radius and clip margin
        hole_position: Requested hole centre, if any
        tessellator: Voronoi capability, scipy-backed by default

    Returns:
        GeometryResult for the given state
    """
    if len(sites) < MIN_SITES:
        logger.debug("Too few sites for geometry", sites=len(sites))
        return GeometryResult.empty()

    tessellator = tessellator or ScipyVoronoiTessellator()

    try:
        bounds = compute_clip_bounds(sites, parameters.clip_margin)
        tessellation = tessellator.compute_clipped_cells(sites, bounds)
        if not tessellation.ok:
            logger.warning("Tessellation failed",
                           reason=tessellation.failure.value, message=tessellation.message)
            return GeometryResult.empty(error=f"{tessellation.failure.value}: {tessellation.message}")

        classification = classify_cells(tessellation.cells, bounds)

        final: List[ShapePolygon] = []
        for cell in classification.interior:
            shrunk = offset_polygon(cell, -parameters.gap_width / 2.0)
            if shrunk is not None:
                final.append(ShapePolygon(shrunk, PolygonRole.CELL))

        boundary = extract_boundary(classification.interior)

        hole_included = False
        if hole_position is not None:
            hole = Hole(hole_position, parameters.hole_diameter)
            hole_polygon = build_hole_polygon(hole, classification.interior, parameters.hole_segments)
            if hole_polygon is not None:
                final.append(ShapePolygon(hole_polygon, PolygonRole.HOLE))
                hole_included = True

        result = GeometryResult(
            final_polygons=final,
            shadow_polygons=classification.exterior,
            boundary_polygons=boundary,
            interior_cells=classification.interior,
            hole_included=hole_included,
        )
        result = round_result(result, parameters.corner_radius)
    except Exception as e:
        logger.exception("Geometry generation failed", sites=len(sites))
        return GeometryResult.empty(error=f"unexpected: {e}")

    logger.info("Geometry generated",
                sites=len(sites),
                interior=len(classification.interior),
                exterior=len(classification.exterior),
                boundary_loops=len(boundary),
                hole_included=hole_included)
    return result


class DesignSession:
    """
    Single-writer state of one earring design.

    Every mutating method reruns the pipeline and stores the new result in
    ``self.result``; the previous result is discarded.
    """

    def __init__(self, parameters: Optional[DesignParameters] = None,
                 tessellator: Optional[Tessellator] = None,
                 spread_settings: Optional[SpreadSettings] = None,
                 max_sites: Optional[int] = None):
        self.sites: List[Point] = []
        self.hole_position: Optional[Point] = None
        self.mode = InteractionMode.ADD_SITES
        self.parameters = parameters or DesignParameters()
        self.tessellator = tessellator or ScipyVoronoiTessellator()
        self.spread_settings = spread_settings or SpreadSettings()
        self.max_sites = max_sites
        self.result = GeometryResult.empty()

    @property
    def can_export(self) -> bool:
        return not self.result.is_empty

    def recompute(self) -> GeometryResult:
        self.result = generate_geometry(self.sites, self.parameters,
                                        self.hole_position, self.tessellator)
        return self.result

    # Sites

    def add_site(self, x: float, y: float) -> GeometryResult:
        if self.max_sites is not None and len(self.sites) >= self.max_sites:
            raise SessionLimitError(f"Session already holds {len(self.sites)} sites (limit {self.max_sites})")
        self.sites.append(to_point((x, y)))
        return self.recompute()

    def move_site(self, index: int, x: float, y: float) -> GeometryResult:
        self._check_index(index)
        self.sites[index] = to_point((x, y))
        return self.recompute()

    def delete_site(self, index: int) -> GeometryResult:
        self._check_index(index)
        del self.sites[index]
        return self.recompute()

    def find_site(self, x: float, y: float, radius: float = SITE_HIT_RADIUS) -> Optional[int]:
        """Index of the nearest site within *radius* of (x, y)."""
        best, best_dist = None, radius
        for i, site in enumerate(self.sites):
            d = math.hypot(site.x - x, site.y - y)
            if d <= best_dist:
                best, best_dist = i, d
        return best

    def clear_sites(self) -> GeometryResult:
        self.sites = []
        return self.recompute()

    def clear_all(self) -> GeometryResult:
        self.sites = []
        self.hole_position = None
        self.mode = InteractionMode.ADD_SITES
        self.result = GeometryResult.empty()
        return self.result

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.sites):
            raise IndexError(f"No site at index {index} (have {len(self.sites)})")

    # Hole and mode

    def set_hole(self, x: float, y: float) -> GeometryResult:
        self.hole_position = to_point((x, y))
        return self.recompute()

    def clear_hole(self) -> GeometryResult:
        self.hole_position = None
        return self.recompute()

    def set_mode(self, mode: InteractionMode) -> None:
        self.mode = InteractionMode(mode)

    def handle_click(self, x: float, y: float) -> GeometryResult:
        """Add a site or place the hole, depending on the current mode."""
        if self.mode == InteractionMode.PLACE_HOLE:
            return self.set_hole(x, y)
        return self.add_site(x, y)

    # Parameters

    def update_parameters(self, **changes) -> GeometryResult:
        """
        Apply parameter changes and refresh the geometry.

        Changes limited to the corner radius only re-round the cached
        polygons; anything else reruns the whole pipeline.
        """
        current = self.parameters.model_dump()
        changed = {k for k, v in changes.items() if current.get(k) != v}
        self.parameters = DesignParameters(**{**current, **changes})

        if not changed:
            return self.result
        if changed <= ROUNDING_ONLY_FIELDS:
            logger.debug("Re-rounding cached geometry", corner_radius=self.parameters.corner_radius)
            self.result = round_result(self.result, self.parameters.corner_radius)
            return self.result
        return self.recompute()

    # Actions

    def spread(self, settings: Optional[SpreadSettings] = None) -> bool:
        """Spread the sites evenly inside the current silhouette.

        Returns:
            True when any site moved (and the geometry was recomputed)
        """
        outcome = spread_points(self.sites, self.result.boundary_polygons,
                                settings or self.spread_settings)
        if not outcome.moved:
            return False
        self.sites = outcome.sites
        self.recompute()
        return True

    def export_svg(self, settings: Optional[SVGExportSettings] = None) -> str:
        from ..export.svg import generate_svg_string

        return generate_svg_string(self.result, self.parameters, settings)
