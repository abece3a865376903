"""
Plan REST API

Edit, reset and import the current teaching plan.
Every endpoint returns the full plan (camelCase) after the change.
"""

import logging
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from lessonplan.errors import (
    ExtractionError,
    ImportInProgressError,
    InvalidPathError,
    UnsupportedSourceError,
)
from lessonplan.extraction.sources import load_source
from lessonplan.session import PlanSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plan", tags=["plan"])


# --- Pydantic Schemas ---

class FieldUpdate(BaseModel):
    path: str  # e.g. "basic.lessonNo" or "steps.2.design"
    value: str


class TitleResponse(BaseModel):
    title: str


# --- Dependencies ---

def get_plan_session(request: Request) -> PlanSession:
    """The editing session created at application startup."""
    return request.app.state.plan_session


# --- Endpoints ---

@router.get("")
async def get_plan(session: PlanSession = Depends(get_plan_session)):
    """Return the current plan."""
    return session.document.to_wire()


@router.patch("")
async def update_field(body: FieldUpdate, session: PlanSession = Depends(get_plan_session)):
    """Set one text field of the plan."""
    try:
        document = session.update(body.path, body.value)
    except InvalidPathError as e:
        # Paths come from the editor's own field bindings; a bad one is a client bug
        logger.error("Rejected edit: %s", e)
        raise HTTPException(status_code=422, detail=str(e))
    return document.to_wire()


@router.post("/games")
async def add_game(session: PlanSession = Depends(get_plan_session)):
    return session.add_game().to_wire()


@router.delete("/games/{index}")
async def remove_game(index: int, session: PlanSession = Depends(get_plan_session)):
    """Remove a game. Removing the last remaining game is ignored."""
    return session.remove_game(index).to_wire()


@router.post("/steps")
async def add_step(session: PlanSession = Depends(get_plan_session)):
    return session.add_step().to_wire()


@router.delete("/steps/{index}")
async def remove_step(index: int, session: PlanSession = Depends(get_plan_session)):
    """Remove a teaching step. Removing the last remaining step is ignored."""
    return session.remove_step(index).to_wire()


@router.post("/sections/{section}/clear")
async def clear_section(section: str, session: PlanSession = Depends(get_plan_session)):
    """Reset one section (e.g. "objectives") to its empty default."""
    try:
        document = session.clear_section(section)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section}")
    return document.to_wire()


@router.post("/reset")
async def reset_plan(session: PlanSession = Depends(get_plan_session)):
    """Discard everything and start from an empty plan."""
    return session.reset().to_wire()


@router.get("/title", response_model=TitleResponse)
async def get_title(session: PlanSession = Depends(get_plan_session)):
    """Title used for the printed plan, e.g. "02.PU1 U7L1 Teaching Plan"."""
    return TitleResponse(title=session.title)


@router.post("/import")
async def import_plan(
    file: UploadFile = File(...),
    session: PlanSession = Depends(get_plan_session),
):
    """
    Replace the plan with one read from an uploaded file.

    Accepts text, Word (.docx), PDF and image files. If the extraction
    service fails, the current plan is left exactly as it was.
    """
    data = await file.read()
    try:
        source = load_source(file.filename, data, file.content_type)
    except UnsupportedSourceError as e:
        raise HTTPException(status_code=415, detail=str(e))

    try:
        document = await session.import_source(source)
    except ImportInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExtractionError as e:
        logger.warning("Plan import from %s failed: %s", source.filename, e)
        raise HTTPException(
            status_code=502,
            detail=f"Could not read a lesson plan from {source.filename}. The current plan was not changed. ({e})",
        )
    return document.to_wire()
