"""Node maintenance and simple graph reads used by the admin and browse APIs."""

from __future__ import annotations

import logging

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from ..db_errors import is_unique_violation
from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..graph import GraphStore
from ..models import (
    Captaincy,
    Entry,
    Hosting,
    Player,
    Team,
    Tournament,
    User,
)
from ..schemas import (
    CaptainOut,
    HostAssigned,
    PlayerOut,
    TeamOut,
    TournamentOut,
    TournamentTeamsOut,
    UserOut,
)
from .authorization import HostingRole, Role

logger = logging.getLogger(__name__)

TOURNAMENT_STATUSES = ("Open", "Live", "Finished")


def normalize_tournament_status(value: str | None) -> str:
    """Return the canonical spelling of a tournament status."""

    wanted = (value or "").strip().lower()
    for status in TOURNAMENT_STATUSES:
        if status.lower() == wanted:
            return status
    raise ValidationError(
        "Invalid status. Must be one of: Open, Live, Finished.",
        code="tournament_status_invalid",
    )


def normalize_role(value: str | None) -> str:
    if not Role.is_valid(value):
        raise ValidationError(
            "Invalid role. Must be one of: Viewer, Host, Admin.", code="role_invalid"
        )
    return Role.parse(value).value


def normalize_hosting_role(value: str | None) -> str:
    wanted = (value or HostingRole.HOST.value).strip().lower()
    for role in HostingRole:
        if role.value.lower() == wanted:
            return role.value
    raise ValidationError(
        "Invalid hosting role. Must be Host or CoHost.", code="hosting_role_invalid"
    )


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------
async def list_users(graph: GraphStore) -> list[UserOut]:
    rows = await graph.query(
        select(User.username, User.display_name, User.role).order_by(User.username)
    )
    return [
        UserOut(username=r.username, display_name=r.display_name, role=r.role)
        for r in rows
    ]


async def create_user(
    graph: GraphStore,
    username: str,
    password: str,
    *,
    display_name: str | None = None,
    role: str = Role.VIEWER.value,
) -> UserOut:
    """Create a user and its player facet (same identifier)."""

    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required.", code="username_required")
    role = normalize_role(role)
    display_name = (display_name or "").strip() or username

    try:
        await graph.mutate(
            insert(User).values(
                username=username,
                display_name=display_name,
                role=role,
                password=password,
            )
        )
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        raise ConflictError("Username already exists.", code="username_exists") from exc

    await graph.merge(Player, {"player_id": username}, on_create={"name": display_name})
    return UserOut(username=username, display_name=display_name, role=role)


async def set_user_role(graph: GraphStore, username: str, role: str) -> str:
    """Change a user's stored role.

    Sessions already issued keep the role they were created with.
    """

    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required.", code="username_required")
    if not (role or "").strip():
        raise ValidationError("Role is required.", code="role_required")
    role = normalize_role(role)

    found = await graph.query_one(select(User.username).where(User.username == username))
    if found is None:
        raise NotFoundError("User not found.", code="user_not_found")

    await graph.mutate(update(User).where(User.username == username).values(role=role))
    logger.info("Role of %s set to %s", username, role)
    return role


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
async def create_player(graph: GraphStore, player_id: str, name: str) -> PlayerOut:
    await graph.merge(Player, {"player_id": player_id}, on_create={"name": name})
    row = await graph.query_one(
        select(Player.player_id, Player.name).where(Player.player_id == player_id)
    )
    return PlayerOut(player_id=row.player_id, name=row.name)


async def create_team_node(
    graph: GraphStore, team_id: str, name: str, sport: str
) -> TeamOut:
    await graph.merge(Team, {"team_id": team_id}, on_create={"name": name, "sport": sport})
    row = await graph.query_one(
        select(Team.team_id, Team.name, Team.sport).where(Team.team_id == team_id)
    )
    return TeamOut(team_id=row.team_id, name=row.name, sport=row.sport)


async def create_tournament(
    graph: GraphStore, tournament_id: str, name: str, sport: str, status: str = "Open"
) -> TournamentOut:
    status = normalize_tournament_status(status)
    await graph.merge(
        Tournament,
        {"tournament_id": tournament_id},
        on_create={"name": name, "sport": sport, "status": status},
    )
    return await get_tournament(graph, tournament_id)


async def set_tournament_status(
    graph: GraphStore, tournament_id: str, status: str
) -> TournamentOut:
    status = normalize_tournament_status(status)
    await get_tournament(graph, tournament_id)
    await graph.mutate(
        update(Tournament)
        .where(Tournament.tournament_id == tournament_id)
        .values(status=status)
    )
    return await get_tournament(graph, tournament_id)


async def assign_host(
    graph: GraphStore, tournament_id: str, username: str, role: str = "Host"
) -> HostAssigned:
    role = normalize_hosting_role(role)
    await get_tournament(graph, tournament_id)
    if await graph.query_one(select(User.username).where(User.username == username)) is None:
        raise NotFoundError("User not found.", code="user_not_found")

    await graph.merge(
        Hosting,
        {"username": username, "tournament_id": tournament_id},
        on_create={"role": role},
        on_match={"role": role},
    )
    return HostAssigned(username=username, tournament_id=tournament_id, role=role)


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------
async def get_tournament(graph: GraphStore, tournament_id: str) -> TournamentOut:
    row = await graph.query_one(
        select(
            Tournament.tournament_id, Tournament.name, Tournament.sport, Tournament.status
        ).where(Tournament.tournament_id == tournament_id)
    )
    if row is None:
        raise NotFoundError("Tournament not found.", code="tournament_not_found")
    return TournamentOut(
        tournament_id=row.tournament_id, name=row.name, sport=row.sport, status=row.status
    )


async def list_tournaments(graph: GraphStore) -> list[TournamentOut]:
    rows = await graph.query(
        select(
            Tournament.tournament_id, Tournament.name, Tournament.sport, Tournament.status
        ).order_by(Tournament.tournament_id)
    )
    return [
        TournamentOut(
            tournament_id=r.tournament_id, name=r.name, sport=r.sport, status=r.status
        )
        for r in rows
    ]


async def list_teams(graph: GraphStore) -> list[TeamOut]:
    rows = await graph.query(
        select(Team.team_id, Team.name, Team.sport).order_by(Team.team_id)
    )
    return [TeamOut(team_id=r.team_id, name=r.name, sport=r.sport) for r in rows]


async def tournament_teams(graph: GraphStore, tournament_id: str) -> TournamentTeamsOut:
    rows = await graph.query(
        select(Team.team_id, Team.name, Team.sport)
        .join(Entry, Entry.team_id == Team.team_id)
        .where(Entry.tournament_id == tournament_id)
        .order_by(Team.team_id)
    )
    return TournamentTeamsOut(
        tournament_id=tournament_id,
        teams=[TeamOut(team_id=r.team_id, name=r.name, sport=r.sport) for r in rows],
    )


async def team_captain(graph: GraphStore, team_id: str) -> CaptainOut:
    row = await graph.query_one(
        select(Player.player_id, Player.name)
        .join(Captaincy, Captaincy.player_id == Player.player_id)
        .where(Captaincy.team_id == team_id)
    )
    if row is None:
        raise NotFoundError(
            f"No captain found for team '{team_id}'.", code="captain_not_found"
        )
    return CaptainOut(
        team_id=team_id, captain=PlayerOut(player_id=row.player_id, name=row.name)
    )
