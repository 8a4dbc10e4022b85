"""Read views that join graph data with cached leaderboards and chat.

Nothing here writes. The cache is read as-is: a freshly approved entry may not
have a leaderboard score yet, and scores may exist for teams the graph no
longer links to the tournament.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy import select

from ..cache import GLOBAL_CHAT, tournament_chat_key
from ..exceptions import NotFoundError, ValidationError
from ..graph import GraphStore
from ..limits import DETAIL_CHAT_N, DETAIL_TOP_N, HOME_CHAT_N, HOME_TOP_N
from ..models import Application, Entry, Hosting, Team, Tournament, User
from ..schemas import (
    ApplicationSummaryOut,
    HomeOut,
    HomeTournamentOut,
    HostOut,
    LeaderboardRowOut,
    TeamOut,
    TournamentDetailOut,
)
from .chat import ChatStore
from .leaderboard import LeaderboardStore

UNKNOWN_TEAM_NAME = "unknown"
STATUS_BUCKETS = ("open", "live", "finished")


@dataclass
class _TournamentGraph:
    tournament_id: str
    name: str
    sport: str
    status: str
    hosts: List[HostOut] = field(default_factory=list)
    entered_teams: List[TeamOut] = field(default_factory=list)
    applications: List[ApplicationSummaryOut] = field(default_factory=list)

    def team_names(self) -> Dict[str, str]:
        """Team names keyed by casefolded id; entries win over applications."""

        names: Dict[str, str] = {}
        for team in self.entered_teams:
            names[team.team_id.casefold()] = team.name
        for app in self.applications:
            names.setdefault(app.team_id.casefold(), app.name)
        return names


async def _load_tournaments(
    graph: GraphStore, tournament_id: str | None = None
) -> list[_TournamentGraph]:
    """Fetch tournaments with their hosts, entries and applications.

    One statement per relationship kind covers every requested tournament, so
    the number of graph round trips does not grow with the tournament count.
    """

    t_stmt = select(
        Tournament.tournament_id, Tournament.name, Tournament.sport, Tournament.status
    ).order_by(Tournament.tournament_id)
    h_stmt = (
        select(Hosting.tournament_id, Hosting.username, User.display_name)
        .outerjoin(User, User.username == Hosting.username)
        .order_by(Hosting.username)
    )
    e_stmt = (
        select(Entry.tournament_id, Team.team_id, Team.name, Team.sport)
        .join(Team, Team.team_id == Entry.team_id)
        .order_by(Team.team_id)
    )
    a_stmt = (
        select(
            Application.tournament_id,
            Team.team_id,
            Team.name,
            Team.sport,
            Application.status,
        )
        .join(Team, Team.team_id == Application.team_id)
        .order_by(Team.team_id)
    )
    if tournament_id is not None:
        t_stmt = t_stmt.where(Tournament.tournament_id == tournament_id)
        h_stmt = h_stmt.where(Hosting.tournament_id == tournament_id)
        e_stmt = e_stmt.where(Entry.tournament_id == tournament_id)
        a_stmt = a_stmt.where(Application.tournament_id == tournament_id)

    tournaments = await graph.query(t_stmt)
    if not tournaments:
        return []

    hosts = defaultdict(list)
    for r in await graph.query(h_stmt):
        if r.username and r.username.strip():
            hosts[r.tournament_id].append(
                HostOut(username=r.username, display_name=r.display_name or r.username)
            )

    entered = defaultdict(list)
    for r in await graph.query(e_stmt):
        if r.team_id and r.team_id.strip():
            entered[r.tournament_id].append(
                TeamOut(team_id=r.team_id, name=r.name or r.team_id, sport=r.sport or "")
            )

    applications = defaultdict(list)
    for r in await graph.query(a_stmt):
        if r.team_id and r.team_id.strip():
            applications[r.tournament_id].append(
                ApplicationSummaryOut(
                    team_id=r.team_id,
                    name=r.name or r.team_id,
                    sport=r.sport or "",
                    status=r.status or "Pending",
                )
            )

    return [
        _TournamentGraph(
            tournament_id=t.tournament_id,
            name=t.name,
            sport=t.sport,
            status=t.status,
            hosts=hosts[t.tournament_id],
            entered_teams=entered[t.tournament_id],
            applications=applications[t.tournament_id],
        )
        for t in tournaments
    ]


async def _leaderboard_rows(
    leaderboard: LeaderboardStore, tournament: _TournamentGraph, top_n: int
) -> list[LeaderboardRowOut]:
    names = tournament.team_names()
    entries = await leaderboard.top(tournament.tournament_id, top_n)
    return [
        LeaderboardRowOut(
            team_id=e.team_id,
            team_name=names.get(e.team_id.casefold(), UNKNOWN_TEAM_NAME),
            score=e.score,
        )
        for e in entries
    ]


async def build_home_view(
    graph: GraphStore,
    leaderboard: LeaderboardStore,
    chat: ChatStore,
    *,
    top_n: int | None = None,
    chat_n: int | None = None,
) -> HomeOut:
    top_n = HOME_TOP_N.clamp(top_n)
    chat_n = HOME_CHAT_N.clamp(chat_n)

    tournaments = await _load_tournaments(graph)
    boards = await asyncio.gather(
        *(_leaderboard_rows(leaderboard, t, top_n) for t in tournaments)
    )

    buckets: Dict[str, List[HomeTournamentOut]] = {name: [] for name in STATUS_BUCKETS}
    for t, board in zip(tournaments, boards):
        bucket = buckets.get((t.status or "").lower())
        if bucket is None:
            continue
        bucket.append(
            HomeTournamentOut(
                tournament_id=t.tournament_id,
                name=t.name,
                sport=t.sport,
                status=t.status,
                hosts=t.hosts,
                entered_teams=t.entered_teams,
                applications=t.applications,
                leaderboard_top=board,
            )
        )

    global_chat = await chat.get_last(GLOBAL_CHAT, chat_n)
    return HomeOut(
        open=buckets["open"],
        live=buckets["live"],
        finished=buckets["finished"],
        global_chat=global_chat,
    )


async def build_tournament_view(
    graph: GraphStore,
    leaderboard: LeaderboardStore,
    chat: ChatStore,
    tournament_id: str,
    *,
    top_n: int | None = None,
    chat_n: int | None = None,
) -> TournamentDetailOut:
    tournament_id = (tournament_id or "").strip()
    if not tournament_id:
        raise ValidationError("Tournament ID is required.", code="id_required")
    top_n = DETAIL_TOP_N.clamp(top_n)
    chat_n = DETAIL_CHAT_N.clamp(chat_n)

    found = await _load_tournaments(graph, tournament_id)
    if not found:
        raise NotFoundError("Tournament not found.", code="tournament_not_found")
    t = found[0]

    board = await _leaderboard_rows(leaderboard, t, top_n)
    messages = await chat.get_last(tournament_chat_key(t.tournament_id), chat_n)
    return TournamentDetailOut(
        tournament_id=t.tournament_id,
        name=t.name,
        sport=t.sport,
        status=t.status,
        hosts=t.hosts,
        entered_teams=t.entered_teams,
        applications=t.applications,
        leaderboard=board,
        chat=messages,
    )
