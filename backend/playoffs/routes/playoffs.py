import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from playoffs.database import get_session
from playoffs.models.playoff_bracket import CONSOLATION_ENABLED, CONSOLATION_NONE
from playoffs.services.playoff_errors import (
    PlayoffConfigError,
    PlayoffConflictError,
    PlayoffError,
    PlayoffInvariantError,
    PlayoffNotFoundError,
)
from playoffs.services.playoff_events import PendingEvents
from playoffs.services.playoff_service import advance_for_week, delete_bracket, generate_bracket, get_bracket_view
from playoffs.utils.league_locks import league_lock

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateBracketRequest(BaseModel):
    playoff_teams: int
    start_week: int
    weeks_by_round: Optional[List[int]] = None
    enable_third_place_game: bool = False
    consolation_type: str = CONSOLATION_NONE
    consolation_teams: Optional[int] = None

    @field_validator("consolation_type")
    @classmethod
    def normalize_consolation_type(cls, v):
        v = (v or CONSOLATION_NONE).strip().upper()
        if v not in (CONSOLATION_NONE, CONSOLATION_ENABLED):
            raise ValueError(f"consolation_type must be {CONSOLATION_NONE} or {CONSOLATION_ENABLED}")
        return v


class AdvanceRequest(BaseModel):
    week: int

    @field_validator("week")
    @classmethod
    def validate_week(cls, v):
        if v < 1:
            raise ValueError("week must be >= 1")
        return v


class AdvanceResponse(BaseModel):
    league_id: int
    week: int
    advanced: bool
    bracket_status: str
    bracket_complete: bool
    results: Dict[str, Dict[str, Any]]
    bracket: Optional[Dict[str, Any]] = None


def _http_error(e: PlayoffError) -> HTTPException:
    if isinstance(e, PlayoffNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PlayoffConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PlayoffConfigError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PlayoffInvariantError):
        logger.error("Playoff invariant violated: %s", e)
        return HTTPException(status_code=500, detail=f"Playoff data integrity error: {str(e)}")
    return HTTPException(status_code=400, detail=str(e))


@router.post("/leagues/{league_id}/playoffs/generate", status_code=201)
def generate_playoffs(league_id: int, data: GenerateBracketRequest, session: Session = Depends(get_session)):
    """Seed the playoffs from standings and create round 1"""
    events = PendingEvents().bind(session)
    try:
        view = generate_bracket(
            session,
            league_id,
            playoff_teams=data.playoff_teams,
            start_week=data.start_week,
            weeks_by_round=data.weeks_by_round,
            enable_third_place=data.enable_third_place_game,
            consolation_type=data.consolation_type,
            consolation_teams=data.consolation_teams,
            events=events,
        )
        session.commit()
    except PlayoffError as e:
        session.rollback()
        raise _http_error(e)
    finally:
        events.unbind()
    return view


@router.get("/leagues/{league_id}/playoffs/bracket")
def get_playoff_bracket(league_id: int, session: Session = Depends(get_session)):
    """Bracket view, or null if playoffs have not been generated"""
    try:
        return get_bracket_view(session, league_id)
    except PlayoffError as e:
        raise _http_error(e)


@router.post("/leagues/{league_id}/playoffs/advance", response_model=AdvanceResponse)
def advance_playoffs(league_id: int, data: AdvanceRequest, session: Session = Depends(get_session)):
    """Advance every enabled sub-bracket for a finalized week. Safe to repeat."""
    events = PendingEvents().bind(session)
    try:
        with league_lock(league_id):
            result = advance_for_week(session, league_id, data.week, events)
            session.commit()
    except PlayoffError as e:
        session.rollback()
        raise _http_error(e)
    finally:
        events.unbind()

    result["bracket"] = get_bracket_view(session, league_id)
    return result


@router.delete("/leagues/{league_id}/playoffs/bracket")
def delete_playoff_bracket(league_id: int, session: Session = Depends(get_session)):
    """Delete the bracket while no playoff game has started"""
    events = PendingEvents().bind(session)
    try:
        result = delete_bracket(session, league_id, events)
        session.commit()
    except PlayoffError as e:
        session.rollback()
        raise _http_error(e)
    finally:
        events.unbind()
    return result
