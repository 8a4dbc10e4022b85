import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tourneymate.cache import GLOBAL_CHAT, tournament_chat_key
from tourneymate.exceptions import NotFoundError, ValidationError
from tourneymate.schemas import ChatMessage
from tourneymate.services import applications, directory
from tourneymate.services.authorization import Identity, Role
from tourneymate.services.chat import ChatStore
from tourneymate.services.leaderboard import LeaderboardStore
from tourneymate.services.views import build_home_view, build_tournament_view

ADMIN = Identity(username="admin", display_name="Admin", role=Role.ADMIN)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _say(i: int) -> ChatMessage:
    return ChatMessage(
        user_id="ana",
        display_name="Ana",
        text=f"hi {i}",
        timestamp_utc=datetime(2024, 1, 1, 10, 0, i % 60, tzinfo=timezone.utc),
    )


async def _world(store):
    await store.create_schema()
    await directory.create_user(store, "ana", "pw", display_name="Ana", role="Host")
    await directory.create_tournament(store, "t_open", "Open Cup", "chess", "Open")
    await directory.create_tournament(store, "t_live", "Live Cup", "chess", "Live")
    await directory.create_tournament(store, "t_done", "Old Cup", "chess", "Finished")
    await directory.assign_host(store, "t_open", "ana")
    await directory.assign_host(store, "t_live", "ana", "CoHost")
    await directory.create_team_node(store, "k", "Knights", "chess")
    await directory.create_team_node(store, "b", "Bishops", "chess")
    await directory.create_team_node(store, "r", "Rooks", "chess")
    await applications.enter_tournament(store, "k", "t_live", ADMIN)
    await applications.apply(store, "b", "t_open", ADMIN)


@pytest.mark.anyio
async def test_home_view_buckets_tournaments_by_status(fresh_stores):
    store, client = fresh_stores
    await _world(store)
    await directory.create_tournament(store, "t_odd", "Draft Cup", "chess", "Open")
    await directory.set_tournament_status(store, "t_odd", "live")

    home = await build_home_view(store, LeaderboardStore(client), ChatStore(client))

    assert [t.tournament_id for t in home.open] == ["t_open"]
    assert [t.tournament_id for t in home.live] == ["t_live", "t_odd"]
    assert [t.tournament_id for t in home.finished] == ["t_done"]

    t_open = home.open[0]
    assert [(h.username, h.display_name) for h in t_open.hosts] == [("ana", "Ana")]
    assert [(a.team_id, a.name, a.status) for a in t_open.applications] == [
        ("b", "Bishops", "Pending")
    ]
    assert [t.team_id for t in home.live[0].entered_teams] == ["k"]


@pytest.mark.anyio
async def test_home_view_leaderboard_names_and_limits(fresh_stores):
    store, client = fresh_stores
    await _world(store)
    board = LeaderboardStore(client)
    chat = ChatStore(client)
    for team, score in [("k", 30), ("b", 20), ("ghost", 10)]:
        await board.add_or_update_score("t_live", team, score)
    for i in range(40):
        await chat.push_message(GLOBAL_CHAT, _say(i))

    home = await build_home_view(store, board, chat)

    rows = home.live[0].leaderboard_top
    assert [(r.team_id, r.team_name, r.score) for r in rows] == [
        ("k", "Knights", 30.0),
        ("b", "unknown", 20.0),
        ("ghost", "unknown", 10.0),
    ]
    assert len(home.global_chat) == 30
    assert home.global_chat[-1].text == "hi 39"

    small = await build_home_view(store, board, chat, top_n=1, chat_n=500)
    assert [r.team_id for r in small.live[0].leaderboard_top] == ["k"]
    assert len(small.global_chat) == 40


@pytest.mark.anyio
async def test_leaderboard_names_fall_back_to_applications(fresh_stores):
    store, client = fresh_stores
    await _world(store)
    board = LeaderboardStore(client)
    await board.add_or_update_score("t_open", "b", 5)

    detail = await build_tournament_view(store, board, ChatStore(client), "t_open")

    assert [(r.team_id, r.team_name) for r in detail.leaderboard] == [("b", "Bishops")]


@pytest.mark.anyio
async def test_tournament_view_includes_own_chat(fresh_stores):
    store, client = fresh_stores
    await _world(store)
    chat = ChatStore(client)
    for i in range(60):
        await chat.push_message(tournament_chat_key("t_live"), _say(i))
    await chat.push_message(GLOBAL_CHAT, _say(99))

    detail = await build_tournament_view(
        store, LeaderboardStore(client), chat, " t_live "
    )

    assert detail.tournament_id == "t_live"
    assert detail.status == "Live"
    assert [(h.username, h.display_name) for h in detail.hosts] == [("ana", "Ana")]
    assert len(detail.chat) == 50
    assert all(m.text != "hi 99" for m in detail.chat)
    assert detail.leaderboard == []


@pytest.mark.anyio
async def test_tournament_view_errors(fresh_stores):
    store, client = fresh_stores
    await _world(store)
    board, chat = LeaderboardStore(client), ChatStore(client)

    with pytest.raises(ValidationError):
        await build_tournament_view(store, board, chat, "  ")
    with pytest.raises(NotFoundError):
        await build_tournament_view(store, board, chat, "t_missing")


@pytest.mark.anyio
async def test_home_view_on_empty_graph(fresh_stores):
    store, client = fresh_stores
    await store.create_schema()

    home = await build_home_view(store, LeaderboardStore(client), ChatStore(client))

    assert home.open == [] and home.live == [] and home.finished == []
    assert home.global_chat == []
