"""
Design parameters for earring generation.

These are the values the interactive surface exposes as sliders, plus the
tuning knobs of the spreading relaxation.
"""

from pydantic import BaseModel, Field

# Parameters whose change only affects corner rounding
ROUNDING_ONLY_FIELDS = frozenset({"corner_radius"})


class DesignParameters(BaseModel):
    """Parameters that drive the geometry pipeline."""

    gap_width: float = Field(default=1.0, ge=0.0, le=50.0, description="Gap left between neighbouring cells")
    hole_diameter: float = Field(default=1.5, gt=0.0, le=50.0, description="Mounting hole diameter")
    corner_radius: float = Field(default=0.0, ge=0.0, le=50.0, description="Corner rounding radius")
    clip_margin: float = Field(default=50.0, gt=0.0, description="Margin between the sites and the clip rectangle")
    hole_segments: int = Field(default=24, ge=3, le=360, description="Segments used to approximate the hole circle")


class SpreadSettings(BaseModel):
    """Settings for the spread-points relaxation."""

    iterations: int = Field(default=100, ge=1, le=10000, description="Maximum number of relaxation iterations")
    step_size: float = Field(default=50.0, gt=0.0, description="Repulsion strength (displacement * distance^2)")
    max_step: float = Field(default=5.0, gt=0.0, description="Longest move of a site in one iteration")
    min_iterations: int = Field(default=5, ge=1, description="Iterations before early termination is allowed")
    tolerance: float = Field(default=1e-3, gt=0.0, description="Movement below which a site counts as settled")


class SVGExportSettings(BaseModel):
    """Settings for vector export."""

    stroke_width: float = Field(default=0.5, gt=0.0, description="Stroke width, also used as viewBox padding")
    decimals: int = Field(default=2, ge=0, le=6, description="Decimal places of emitted coordinates")
    include_outline: bool = Field(default=False, description="Also export the reconstructed outer silhouette")
