from fastapi import APIRouter, Depends, Query

from ..dependencies import graph_store
from ..exceptions import ValidationError
from ..graph import GraphStore
from ..schemas import (
    ApplicationOut,
    CaptainOut,
    TeamCreate,
    TeamCreated,
    TeamOut,
    WorkflowResult,
)
from ..services import applications, directory
from ..services.applications import ApplicationStatus
from ..services.authorization import Identity
from .auth import get_current_identity

router = APIRouter(prefix="/teams", tags=["teams"])


def _status_filter(value: str | None) -> ApplicationStatus | None:
    """Map the ``status`` query value to a filter; ``all`` disables filtering."""

    wanted = (value or ApplicationStatus.PENDING.value).strip().lower()
    if wanted == "all":
        return None
    for status in ApplicationStatus:
        if status.value.lower() == wanted:
            return status
    raise ValidationError(
        "Invalid status. Must be one of: Pending, Approved, Rejected, all.",
        code="application_status_invalid",
    )


@router.post("", response_model=TeamCreated)
async def create_team(
    body: TeamCreate,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.create_team(graph, body.name, body.sport, current)


@router.get("", response_model=list[TeamOut])
async def list_teams(graph: GraphStore = Depends(graph_store)):
    return await directory.list_teams(graph)


@router.get("/my-teams", response_model=list[TeamOut])
async def my_teams(
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.my_teams(graph, current)


@router.get("/applications/{tournament_id}", response_model=list[ApplicationOut])
async def list_applications(
    tournament_id: str,
    status: str | None = Query(None),
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.list_applications(
        graph, tournament_id, current, status=_status_filter(status)
    )


@router.post(
    "/applications/{tournament_id}/{team_id}/approve", response_model=WorkflowResult
)
async def approve_application(
    tournament_id: str,
    team_id: str,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.approve(graph, tournament_id, team_id, current)


@router.post(
    "/applications/{tournament_id}/{team_id}/reject", response_model=WorkflowResult
)
async def reject_application(
    tournament_id: str,
    team_id: str,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.reject(graph, tournament_id, team_id, current)


@router.get("/{team_id}/captain", response_model=CaptainOut)
async def team_captain(team_id: str, graph: GraphStore = Depends(graph_store)):
    return await directory.team_captain(graph, team_id)


@router.post("/{team_id}/apply/{tournament_id}", response_model=WorkflowResult)
async def apply(
    team_id: str,
    tournament_id: str,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(get_current_identity),
):
    return await applications.apply(graph, team_id, tournament_id, current)
