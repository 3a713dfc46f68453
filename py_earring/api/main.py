"""FastAPI main application."""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
import structlog
import uuid
from datetime import datetime

from .. import __version__
from ..config import settings, DesignParameters, SpreadSettings, SVGExportSettings
from ..core.pipeline import SITE_HIT_RADIUS, DesignSession, GeometryResult, InteractionMode, SessionLimitError
from ..core.rounding import commands_to_path_data
from ..export.svg import is_diagnostic
from ..utils.logging import configure_logging

# Configure logging
configure_logging(settings.effective_log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Voronoi Earring Designer API",
    description="Place Voronoi sites and export laser-cuttable earring outlines",
    version=__version__
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory design sessions; each is owned by a single client
sessions: Dict[str, DesignSession] = {}
session_created: Dict[str, datetime] = {}


# Request/Response models
class SessionCreateRequest(BaseModel):
    """Request to start a new design session."""

    parameters: Optional[DesignParameters] = Field(None, description="Initial design parameters")


class PointModel(BaseModel):
    """A position in the design's coordinate space."""

    x: float = Field(description="X coordinate")
    y: float = Field(description="Y coordinate")


class ModeRequest(BaseModel):
    mode: InteractionMode = Field(description="What a click does")


class ParameterUpdate(BaseModel):
    """Partial update of design parameters."""

    gap_width: Optional[float] = Field(None, ge=0.0, le=50.0)
    hole_diameter: Optional[float] = Field(None, gt=0.0, le=50.0)
    corner_radius: Optional[float] = Field(None, ge=0.0, le=50.0)
    clip_margin: Optional[float] = Field(None, gt=0.0)
    hole_segments: Optional[int] = Field(None, ge=3, le=360)


class GeometryResponse(BaseModel):
    """Computed geometry of a session."""

    final_polygons: List[List[List[float]]]
    polygon_roles: List[str]
    shadow_polygons: List[List[List[float]]]
    boundary_polygons: List[List[List[float]]]
    display_paths: List[str]
    boundary_paths: List[str]
    hole_included: bool
    error: Optional[str] = None


class SessionResponse(BaseModel):
    """Full state of a design session."""

    session_id: str
    created_at: datetime
    mode: InteractionMode
    sites: List[PointModel]
    hole: Optional[PointModel] = None
    parameters: DesignParameters
    can_export: bool
    geometry: GeometryResponse


class SpreadResponse(BaseModel):
    moved: bool
    session: SessionResponse


class SiteHitResponse(BaseModel):
    """Index of the site under a pointer position, if any."""

    index: Optional[int] = None


def _polygons(polygons) -> List[List[List[float]]]:
    return [[[p[0], p[1]] for p in polygon] for polygon in polygons]


def _geometry_response(result: GeometryResult) -> GeometryResponse:
    return GeometryResponse(
        final_polygons=_polygons(shape.points for shape in result.final_polygons),
        polygon_roles=[shape.role.value for shape in result.final_polygons],
        shadow_polygons=_polygons(result.shadow_polygons),
        boundary_polygons=_polygons(result.boundary_polygons),
        display_paths=[commands_to_path_data(cmds) for cmds in result.display_commands],
        boundary_paths=[commands_to_path_data(cmds) for cmds in result.boundary_commands],
        hole_included=result.hole_included,
        error=result.error,
    )


def _session_response(session_id: str, session: DesignSession) -> SessionResponse:
    hole = session.hole_position
    return SessionResponse(
        session_id=session_id,
        created_at=session_created[session_id],
        mode=session.mode,
        sites=[PointModel(x=s.x, y=s.y) for s in session.sites],
        hole=PointModel(x=hole.x, y=hole.y) if hole is not None else None,
        parameters=session.parameters,
        can_export=session.can_export,
        geometry=_geometry_response(session.result),
    )


def get_session_or_404(session_id: str) -> DesignSession:
    """Get session or raise 404 if not found."""
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Voronoi Earring Designer API", version=__version__)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Voronoi Earring Designer API", open_sessions=len(sessions))


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Voronoi Earring Designer API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "sessions": len(sessions)}


@app.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: Optional[SessionCreateRequest] = None):
    """Start a new, empty design session."""
    if len(sessions) >= settings.max_sessions:
        raise HTTPException(status_code=429, detail="Too many open design sessions")

    session_id = str(uuid.uuid4())
    parameters = request.parameters if request and request.parameters else DesignParameters()
    sessions[session_id] = DesignSession(parameters=parameters, max_sites=settings.max_sites)
    session_created[session_id] = datetime.utcnow()

    logger.info("Design session created", session_id=session_id)
    return _session_response(session_id, sessions[session_id])


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _session_response(session_id, get_session_or_404(session_id))


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    get_session_or_404(session_id)
    del sessions[session_id]
    session_created.pop(session_id, None)
    logger.info("Design session deleted", session_id=session_id)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/sites", response_model=SessionResponse)
async def add_site(session_id: str, point: PointModel):
    session = get_session_or_404(session_id)
    try:
        session.add_site(point.x, point.y)
    except SessionLimitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_response(session_id, session)


@app.put("/sessions/{session_id}/sites/{index}", response_model=SessionResponse)
async def move_site(session_id: str, index: int, point: PointModel):
    session = get_session_or_404(session_id)
    try:
        session.move_site(index, point.x, point.y)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session_id, session)


@app.delete("/sessions/{session_id}/sites/{index}", response_model=SessionResponse)
async def delete_site(session_id: str, index: int):
    session = get_session_or_404(session_id)
    try:
        session.delete_site(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session_id, session)


@app.get("/sessions/{session_id}/sites/hit", response_model=SiteHitResponse)
async def hit_site(session_id: str, x: float, y: float, radius: float = Query(SITE_HIT_RADIUS, gt=0.0)):
    """Find the site nearest to (x, y) for dragging or deleting."""
    session = get_session_or_404(session_id)
    return SiteHitResponse(index=session.find_site(x, y, radius))


@app.delete("/sessions/{session_id}/sites", response_model=SessionResponse)
async def clear_sites(session_id: str):
    session = get_session_or_404(session_id)
    session.clear_sites()
    return _session_response(session_id, session)


@app.put("/sessions/{session_id}/mode", response_model=SessionResponse)
async def set_mode(session_id: str, request: ModeRequest):
    session = get_session_or_404(session_id)
    session.set_mode(request.mode)
    return _session_response(session_id, session)


@app.post("/sessions/{session_id}/click", response_model=SessionResponse)
async def click(session_id: str, point: PointModel):
    """Add a site or place the hole, depending on the session mode."""
    session = get_session_or_404(session_id)
    try:
        session.handle_click(point.x, point.y)
    except SessionLimitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_response(session_id, session)


@app.put("/sessions/{session_id}/hole", response_model=SessionResponse)
async def set_hole(session_id: str, point: PointModel):
    session = get_session_or_404(session_id)
    session.set_hole(point.x, point.y)
    return _session_response(session_id, session)


@app.delete("/sessions/{session_id}/hole", response_model=SessionResponse)
async def clear_hole(session_id: str):
    session = get_session_or_404(session_id)
    session.clear_hole()
    return _session_response(session_id, session)


@app.patch("/sessions/{session_id}/parameters", response_model=SessionResponse)
async def update_parameters(session_id: str, update: ParameterUpdate):
    session = get_session_or_404(session_id)
    changes = {k: v for k, v in update.model_dump().items() if v is not None}
    session.update_parameters(**changes)
    return _session_response(session_id, session)


@app.post("/sessions/{session_id}/spread", response_model=SpreadResponse)
async def spread(session_id: str, spread_settings: Optional[SpreadSettings] = None):
    """Spread the sites evenly inside the current outline."""
    session = get_session_or_404(session_id)
    moved = session.spread(spread_settings)
    return SpreadResponse(moved=moved, session=_session_response(session_id, session))


@app.post("/sessions/{session_id}/clear", response_model=SessionResponse)
async def clear_all(session_id: str):
    session = get_session_or_404(session_id)
    session.clear_all()
    return _session_response(session_id, session)


@app.get("/sessions/{session_id}/export")
async def export_svg(session_id: str, include_outline: bool = False):
    """Export the current design as an SVG document."""
    session = get_session_or_404(session_id)
    svg = session.export_svg(SVGExportSettings(include_outline=include_outline))
    if is_diagnostic(svg):
        raise HTTPException(status_code=409, detail=svg)

    logger.info("Design exported", session_id=session_id)
    return Response(
        content=svg,
        media_type="image/svg+xml",
        headers={"Content-Disposition": f'attachment; filename="voronoi-earring-{session_id[:8]}.svg"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
