from fastapi import APIRouter, Depends

from ..dependencies import graph_store
from ..exceptions import AuthorizationFailure
from ..graph import GraphStore
from ..schemas import (
    EnterTournamentOut,
    HostAssign,
    HostAssigned,
    JoinTeamOut,
    PlayerCreate,
    PlayerOut,
    RoleUpdate,
    RoleUpdated,
    TeamNodeCreate,
    TeamOut,
    TournamentCreate,
    TournamentOut,
    TournamentStatusUpdate,
    UserCreate,
    UserOut,
)
from ..services import applications, directory
from ..services.authorization import Identity, is_admin
from .auth import get_current_identity

router = APIRouter(prefix="/admin", tags=["admin"])


async def require_admin(
    current: Identity = Depends(get_current_identity),
) -> Identity:
    if not is_admin(current):
        raise AuthorizationFailure("Admin role required.", code="admin_forbidden")
    return current


@router.get("/users", response_model=list[UserOut])
async def list_users(
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.list_users(graph)


@router.post("/users", response_model=UserOut)
async def create_user(
    body: UserCreate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.create_user(
        graph,
        body.username,
        body.password,
        display_name=body.display_name,
        role=body.role,
    )


@router.post("/users/{username}/role", response_model=RoleUpdated)
async def set_role(
    username: str,
    body: RoleUpdate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    role = await directory.set_user_role(graph, username, body.role)
    return RoleUpdated(username=username.strip(), role=role)


@router.post("/players", response_model=PlayerOut)
async def create_player(
    body: PlayerCreate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.create_player(graph, body.player_id, body.name)


@router.post("/teams", response_model=TeamOut)
async def create_team(
    body: TeamNodeCreate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.create_team_node(graph, body.team_id, body.name, body.sport)


@router.post("/tournaments", response_model=TournamentOut)
async def create_tournament(
    body: TournamentCreate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.create_tournament(
        graph, body.tournament_id, body.name, body.sport, body.status
    )


@router.post("/tournaments/{tournament_id}/status", response_model=TournamentOut)
async def set_tournament_status(
    tournament_id: str,
    body: TournamentStatusUpdate,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.set_tournament_status(graph, tournament_id, body.status)


@router.post("/tournaments/{tournament_id}/hosts", response_model=HostAssigned)
async def assign_host(
    tournament_id: str,
    body: HostAssign,
    graph: GraphStore = Depends(graph_store),
    _: Identity = Depends(require_admin),
):
    return await directory.assign_host(graph, tournament_id, body.username, body.role)


@router.post("/players/{player_id}/join/{team_id}", response_model=JoinTeamOut)
async def join_team(
    player_id: str,
    team_id: str,
    captain: bool = False,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(require_admin),
):
    return await applications.join_team(
        graph, player_id, team_id, current, captain=captain
    )


@router.post("/teams/{team_id}/enter/{tournament_id}", response_model=EnterTournamentOut)
async def enter_tournament(
    team_id: str,
    tournament_id: str,
    approved: bool = True,
    graph: GraphStore = Depends(graph_store),
    current: Identity = Depends(require_admin),
):
    return await applications.enter_tournament(
        graph, team_id, tournament_id, current, approved=approved
    )
