"""
SVG export of a generated design.

The design is written as one path holding every final polygon (cells and the
reverse-wound hole) with ``fill-rule="evenodd"``, so the hole cuts through
when the shape is filled. The viewBox is derived from the emitted
coordinates and padded by the stroke width.
"""

from typing import List, Optional, Sequence

import structlog

from ..config.design_settings import DesignParameters, SVGExportSettings
from ..core.pipeline import GeometryResult
from ..core.rounding import PathCommand, command_points, commands_to_path_data

logger = structlog.get_logger()

NO_GEOMETRY_MESSAGE = "<!-- Error: No valid internal Voronoi cells generated. Add more points. -->"
NO_BOUNDS_MESSAGE = "<!-- Error: Could not determine bounds for SVG. -->"

SVG_NAMESPACE = "http://www.w3.org/2000/svg"


def is_diagnostic(svg: str) -> bool:
    """True when *svg* is a diagnostic placeholder rather than a document."""
    return svg.startswith("<!--")


def _path_element(command_sets: Sequence[Sequence[PathCommand]], settings: SVGExportSettings) -> str:
    data = " ".join(commands_to_path_data(cmds, settings.decimals) for cmds in command_sets if cmds)
    return (f'  <path d="{data}" fill="none" fill-rule="evenodd" '
            f'stroke="#000000" stroke-width="{settings.stroke_width}" />\n')


def generate_svg_string(result: GeometryResult, parameters: DesignParameters,
                        settings: Optional[SVGExportSettings] = None) -> str:
    """
    Render *result* as a standalone SVG document.

    Args:
        result: Pipeline output to export
        parameters: Parameters recorded in the header comment
        settings: Stroke width, precision and outline options

    Returns:
        SVG document, or a diagnostic comment when there is nothing to export
    """
    settings = settings or SVGExportSettings()

    if result.is_empty or not result.display_commands:
        return NO_GEOMETRY_MESSAGE

    command_sets: List[Sequence[PathCommand]] = list(result.display_commands)
    outline_sets: List[Sequence[PathCommand]] = list(result.boundary_commands) if settings.include_outline else []

    # Bounds come from the rounded coordinates that are actually written
    points = [p for cmds in command_sets + outline_sets for p in command_points(cmds)]
    if not points:
        return NO_BOUNDS_MESSAGE

    scale = 10 ** settings.decimals
    xs = [round(p.x * scale) / scale for p in points]
    ys = [round(p.y * scale) / scale for p in points]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)

    d = settings.decimals
    width = max(1.0, max_x - min_x)
    height = max(1.0, max_y - min_y)
    pad = settings.stroke_width
    view_box = (f"{min_x - pad:.{d}f} {min_y - pad:.{d}f} "
                f"{width + 2 * pad:.{d}f} {height + 2 * pad:.{d}f}")

    paths = _path_element(command_sets, settings)
    if outline_sets:
        paths += _path_element(outline_sets, settings)

    comment = (f"<!-- Generated Voronoi Earring - Gap Width: {parameters.gap_width:.1f}, "
               f"Hole Dia: {parameters.hole_diameter:.1f}, "
               f"Corner Radius: {parameters.corner_radius:.1f} -->\n")

    logger.info("SVG exported", shapes=len(command_sets), outline=bool(outline_sets), view_box=view_box)
    return (f'<svg width="{width:.{d}f}px" height="{height:.{d}f}px" viewBox="{view_box}" '
            f'xmlns="{SVG_NAMESPACE}">\n{comment}{paths}</svg>')
