from fastapi import APIRouter, Depends, Query

from ..dependencies import graph_store, leaderboard_store
from ..exceptions import AuthorizationFailure, ValidationError
from ..graph import GraphStore
from ..limits import DETAIL_TOP_N
from ..schemas import LeaderboardEntryOut, OkResponse, UpsertScore
from ..services.applications import host_usernames
from ..services.authorization import Identity, can_manage_scores
from ..services.leaderboard import LeaderboardStore
from .auth import get_current_identity

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.post("/score", response_model=OkResponse)
async def upsert_score(
    body: UpsertScore,
    graph: GraphStore = Depends(graph_store),
    leaderboard: LeaderboardStore = Depends(leaderboard_store),
    current: Identity = Depends(get_current_identity),
):
    tournament_id = body.tournament_id.strip()
    team_id = body.team_id.strip()
    if not tournament_id or not team_id:
        raise ValidationError(
            "tournamentId and teamId are required.", code="id_required"
        )
    hosts = await host_usernames(graph, tournament_id)
    if not can_manage_scores(current, hosts):
        raise AuthorizationFailure(
            "Only hosts of this tournament or admins can set scores.",
            code="leaderboard_forbidden",
        )
    await leaderboard.add_or_update_score(tournament_id, team_id, body.score)
    return OkResponse()


@router.get("/top", response_model=list[LeaderboardEntryOut])
async def top(
    tournament_id: str | None = Query(None, alias="tournamentId"),
    top_n: int | None = Query(None, alias="topN"),
    leaderboard: LeaderboardStore = Depends(leaderboard_store),
):
    tournament_id = (tournament_id or "").strip()
    if not tournament_id:
        raise ValidationError("tournamentId is required.", code="id_required")
    entries = await leaderboard.top(tournament_id, DETAIL_TOP_N.clamp(top_n))
    return [LeaderboardEntryOut(team_id=e.team_id, score=e.score) for e in entries]
