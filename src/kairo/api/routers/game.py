"""City session endpoints: lifecycle, ticks, build/demolish commands, goal claims."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from kairo.api.schemas import (
    ClaimResponse,
    CommandRequest,
    CommandResponse,
    CreateSessionRequest,
    SessionResponse,
    SessionSummary,
    TickRequest,
    TickResponse,
)
from kairo.core.config import SimulationConfig
from kairo.core.goals import GoalNotClaimableError

router = APIRouter()


def _get(mgr, session_id: str):
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager

    config = None
    if req.config:
        try:
            config = SimulationConfig.from_dict(req.config)
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=422, detail=f"Invalid config: {exc}")

    try:
        session = mgr.create_session(req.scenario_id, config=config, name=req.name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    return mgr.detail(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    return request.app.state.session_manager.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    return mgr.detail(_get(mgr, session_id))


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/tick", response_model=TickResponse)
def tick_session(session_id: str, req: TickRequest, request: Request):
    mgr = request.app.state.session_manager
    _get(mgr, session_id)
    reports = mgr.tick(session_id, req.n)
    last = reports[-1]
    return {
        "day": last.day,
        "ticks": len(reports),
        "income_delta": last.result.income_delta,
        "population_delta": last.result.population_delta,
        "counts_by_kind": {k.value: v for k, v in last.result.counts_by_kind.items()},
        "goal_completed": any(r.goal_completed for r in reports),
        "city": last.city.to_dict(),
        "events": [e.to_dict() for r in reports for e in r.events],
    }


@router.post("/sessions/{session_id}/command", response_model=CommandResponse)
def command_session(session_id: str, req: CommandRequest, request: Request):
    mgr = request.app.state.session_manager
    _get(mgr, session_id)
    outcome = mgr.command(session_id, req.tool, req.x, req.y)
    return {
        "applied": outcome.applied,
        "event": outcome.event.to_dict() if outcome.event else None,
        "news": outcome.news.to_dict() if outcome.news else None,
        "city": outcome.city.to_dict(),
    }


@router.post("/sessions/{session_id}/claim", response_model=ClaimResponse)
def claim_goal(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    session = _get(mgr, session_id)
    try:
        goal = mgr.claim(session_id)
    except GoalNotClaimableError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {
        "reward": goal.reward,
        "goal": goal.to_dict(),
        "city": session.controller.city.to_dict(),
    }


@router.get("/sessions/{session_id}/events")
def recent_events(session_id: str, request: Request, limit: int = 50):
    session = _get(request.app.state.session_manager, session_id)
    return [e.to_dict() for e in session.controller.bus.recent(limit)]


@router.post("/sessions/{session_id}/clock/start", response_model=SessionSummary)
def start_clock(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    _get(mgr, session_id)
    return mgr.summary(mgr.start_clock(session_id))


@router.post("/sessions/{session_id}/clock/stop", response_model=SessionSummary)
def stop_clock(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    session = _get(mgr, session_id)
    return mgr.summary(mgr.stop_clock(session))
