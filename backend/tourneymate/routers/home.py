from fastapi import APIRouter, Depends, Query

from ..dependencies import chat_store, graph_store, leaderboard_store
from ..graph import GraphStore
from ..schemas import HomeOut
from ..services.chat import ChatStore
from ..services.leaderboard import LeaderboardStore
from ..services.views import build_home_view

router = APIRouter(tags=["home"])


@router.get("/home", response_model=HomeOut)
async def home(
    top_n: int | None = Query(None, alias="topN"),
    chat_n: int | None = Query(None, alias="chatN"),
    graph: GraphStore = Depends(graph_store),
    leaderboard: LeaderboardStore = Depends(leaderboard_store),
    chat: ChatStore = Depends(chat_store),
):
    return await build_home_view(graph, leaderboard, chat, top_n=top_n, chat_n=chat_n)
