from fastapi import APIRouter, Depends, Query

from ..dependencies import chat_store, graph_store, leaderboard_store
from ..graph import GraphStore
from ..schemas import TournamentDetailOut, TournamentOut, TournamentTeamsOut
from ..services import directory
from ..services.chat import ChatStore
from ..services.leaderboard import LeaderboardStore
from ..services.views import build_tournament_view

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


@router.get("", response_model=list[TournamentOut])
async def list_tournaments(graph: GraphStore = Depends(graph_store)):
    return await directory.list_tournaments(graph)


@router.get("/{tournament_id}", response_model=TournamentDetailOut)
async def tournament_detail(
    tournament_id: str,
    top_n: int | None = Query(None, alias="topN"),
    chat_n: int | None = Query(None, alias="chatN"),
    graph: GraphStore = Depends(graph_store),
    leaderboard: LeaderboardStore = Depends(leaderboard_store),
    chat: ChatStore = Depends(chat_store),
):
    return await build_tournament_view(
        graph, leaderboard, chat, tournament_id, top_n=top_n, chat_n=chat_n
    )


@router.get("/{tournament_id}/teams", response_model=TournamentTeamsOut)
async def tournament_teams(tournament_id: str, graph: GraphStore = Depends(graph_store)):
    return await directory.tournament_teams(graph, tournament_id)
