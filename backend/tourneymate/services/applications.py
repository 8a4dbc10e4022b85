"""Team applications to tournaments.

An application moves ``Pending -> Approved`` or ``Pending -> Rejected`` and
never leaves those terminal states. Approving also creates the team's entry
into the tournament. Both decided forms keep the application row for audit;
a team with any application or entry for a tournament cannot apply to it
again.

None of the multi-statement operations here are atomic: each statement
commits on its own. Duplicate concurrent applies are stopped by the
application table's primary key.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from ..db_errors import is_unique_violation
from ..exceptions import (
    AuthorizationFailure,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..graph import GraphStore
from ..models import (
    Application,
    Captaincy,
    Entry,
    Hosting,
    Membership,
    Player,
    Team,
    Tournament,
)
from ..schemas import (
    ApplicationOut,
    EnterTournamentOut,
    JoinTeamOut,
    TeamCreated,
    TeamOut,
    WorkflowResult,
)
from ..time_utils import coerce_utc, utcnow
from .authorization import (
    Identity,
    can_apply_for_team,
    can_review_applications,
    is_admin,
)

logger = logging.getLogger(__name__)

OPEN_STATUS = "Open"


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


_TRANSITIONS = {
    (ApplicationStatus.PENDING, ReviewAction.APPROVE): ApplicationStatus.APPROVED,
    (ApplicationStatus.PENDING, ReviewAction.REJECT): ApplicationStatus.REJECTED,
}


def next_status(
    current: ApplicationStatus | None, action: ReviewAction
) -> ApplicationStatus:
    """Return the status ``action`` leads to from ``current``.

    Only pending applications can be reviewed; anything else (no application,
    or one already decided) reads as a missing pending application.
    """

    target = _TRANSITIONS.get((current, action)) if current is not None else None
    if target is None:
        raise NotFoundError(
            "Pending application not found.", code="application_not_found"
        )
    return target


def _parse_status(value: str | None) -> ApplicationStatus | None:
    try:
        return ApplicationStatus(value) if value else None
    except ValueError:
        logger.warning("Unexpected application status %r", value)
        return None


def _require_id(value: str | None, label: str) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValidationError(f"{label} is required.", code="id_required")
    return trimmed


def _require_admin(caller: Identity) -> None:
    if not is_admin(caller):
        raise AuthorizationFailure("Admin role required.", code="admin_forbidden")


async def host_usernames(graph: GraphStore, tournament_id: str) -> list[str]:
    rows = await graph.query(
        select(Hosting.username).where(Hosting.tournament_id == tournament_id)
    )
    return [r.username for r in rows]


async def captain_ids(graph: GraphStore, team_id: str) -> list[str]:
    rows = await graph.query(
        select(Captaincy.player_id).where(Captaincy.team_id == team_id)
    )
    return [r.player_id for r in rows]


async def require_reviewer(
    graph: GraphStore, tournament_id: str, caller: Identity
) -> None:
    hosts = await host_usernames(graph, tournament_id)
    if not can_review_applications(caller, hosts):
        raise AuthorizationFailure(
            "Caller does not host this tournament.", code="tournament_not_hosted"
        )


async def _team(graph: GraphStore, team_id: str):
    return await graph.query_one(
        select(Team.team_id, Team.name, Team.sport).where(Team.team_id == team_id)
    )


async def _tournament(graph: GraphStore, tournament_id: str):
    return await graph.query_one(
        select(
            Tournament.tournament_id, Tournament.name, Tournament.sport, Tournament.status
        ).where(Tournament.tournament_id == tournament_id)
    )


async def create_team(
    graph: GraphStore, name: str, sport: str, caller: Identity
) -> TeamCreated:
    """Create a team captained by ``caller``."""

    name = (name or "").strip()
    sport = (sport or "").strip()
    if not name:
        raise ValidationError("Team name is required.", code="team_name_required")
    if not sport:
        raise ValidationError("Sport is required.", code="team_sport_required")

    team_id = f"team_{uuid.uuid4().hex}"
    await graph.merge(
        Player,
        {"player_id": caller.username},
        on_create={"name": caller.display_name},
    )
    await graph.mutate(insert(Team).values(team_id=team_id, name=name, sport=sport))
    await graph.merge(Captaincy, {"player_id": caller.username, "team_id": team_id})
    await graph.merge(Membership, {"player_id": caller.username, "team_id": team_id})
    logger.info("Team %s created by %s", team_id, caller.username)

    return TeamCreated(
        team_id=team_id, name=name, sport=sport, captain_username=caller.username
    )


async def my_teams(graph: GraphStore, caller: Identity) -> list[TeamOut]:
    rows = await graph.query(
        select(Team.team_id, Team.name, Team.sport)
        .join(Captaincy, Captaincy.team_id == Team.team_id)
        .where(Captaincy.player_id == caller.username)
        .order_by(Team.name, Team.team_id)
    )
    return [TeamOut(team_id=r.team_id, name=r.name, sport=r.sport) for r in rows]


async def apply(
    graph: GraphStore, team_id: str, tournament_id: str, caller: Identity
) -> WorkflowResult:
    team_id = _require_id(team_id, "Team ID")
    tournament_id = _require_id(tournament_id, "Tournament ID")

    team = await _team(graph, team_id)
    if team is None:
        raise ValidationError("Team not found.", code="team_not_found")
    tournament = await _tournament(graph, tournament_id)
    if tournament is None:
        raise ValidationError("Tournament not found.", code="tournament_not_found")

    if not can_apply_for_team(caller, await captain_ids(graph, team_id)):
        raise AuthorizationFailure(
            "Only the team captain may apply.", code="team_not_captain"
        )

    linked = await graph.query_one(
        select(
            select(Application.team_id)
            .where(
                Application.team_id == team_id,
                Application.tournament_id == tournament_id,
            )
            .exists()
            .label("applied"),
            select(Entry.team_id)
            .where(Entry.team_id == team_id, Entry.tournament_id == tournament_id)
            .exists()
            .label("entered"),
        )
    )
    if linked is not None and (linked.applied or linked.entered):
        raise ConflictError(
            "Team has already applied or entered this tournament.",
            code="application_exists",
        )

    if (team.sport or "").casefold() != (tournament.sport or "").casefold():
        raise ValidationError(
            f"Team sport ({team.sport}) does not match tournament sport ({tournament.sport}).",
            code="sport_mismatch",
        )
    if (tournament.status or "").casefold() != OPEN_STATUS.casefold():
        raise ValidationError(
            f"Tournament is '{tournament.status}'. Apply is allowed only for Open.",
            code="tournament_not_open",
        )

    try:
        await graph.mutate(
            insert(Application).values(
                team_id=team_id,
                tournament_id=tournament_id,
                status=ApplicationStatus.PENDING.value,
                created_at=utcnow(),
            )
        )
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        raise ConflictError(
            "Team has already applied or entered this tournament.",
            code="application_exists",
        ) from exc

    logger.info("Team %s applied for %s", team_id, tournament_id)
    return WorkflowResult(
        team_id=team_id,
        tournament_id=tournament_id,
        status=ApplicationStatus.PENDING.value,
    )


async def list_applications(
    graph: GraphStore,
    tournament_id: str,
    caller: Identity,
    status: ApplicationStatus | None = ApplicationStatus.PENDING,
) -> list[ApplicationOut]:
    """Applications for a tournament, filtered by ``status`` (``None`` for all)."""

    tournament_id = _require_id(tournament_id, "Tournament ID")
    await require_reviewer(graph, tournament_id, caller)
    if await _tournament(graph, tournament_id) is None:
        raise NotFoundError("Tournament not found.", code="tournament_not_found")

    stmt = (
        select(
            Team.team_id,
            Team.name,
            Team.sport,
            Application.status,
            Application.created_at,
            Application.reviewed_at,
        )
        .join(Application, Application.team_id == Team.team_id)
        .where(Application.tournament_id == tournament_id)
    )
    if status is not None:
        stmt = stmt.where(Application.status == status.value)
    rows = await graph.query(stmt.order_by(Application.created_at, Team.team_id))

    return [
        ApplicationOut(
            team_id=r.team_id,
            name=r.name,
            sport=r.sport,
            status=r.status,
            created_at=coerce_utc(r.created_at),
            reviewed_at=coerce_utc(r.reviewed_at),
        )
        for r in rows
    ]


async def _review(
    graph: GraphStore,
    tournament_id: str,
    team_id: str,
    caller: Identity,
    action: ReviewAction,
) -> ApplicationStatus:
    tournament_id = _require_id(tournament_id, "Tournament ID")
    team_id = _require_id(team_id, "Team ID")
    await require_reviewer(graph, tournament_id, caller)

    pair = (
        Application.team_id == team_id,
        Application.tournament_id == tournament_id,
    )
    row = await graph.query_one(select(Application.status).where(*pair))
    target = next_status(_parse_status(row.status) if row else None, action)

    changed = await graph.mutate(
        update(Application)
        .where(*pair, Application.status == ApplicationStatus.PENDING.value)
        .values(status=target.value, reviewed_at=utcnow())
    )
    if not changed:
        # Another reviewer decided it between the read and the write.
        raise NotFoundError(
            "Pending application not found.", code="application_not_found"
        )
    return target


async def approve(
    graph: GraphStore, tournament_id: str, team_id: str, caller: Identity
) -> WorkflowResult:
    status = await _review(graph, tournament_id, team_id, caller, ReviewAction.APPROVE)

    approved = {"approved": True, "approved_at": utcnow()}
    await graph.merge(
        Entry,
        {"team_id": team_id.strip(), "tournament_id": tournament_id.strip()},
        on_create=approved,
        on_match=approved,
    )
    logger.info(
        "Application %s -> %s approved by %s", team_id, tournament_id, caller.username
    )
    return WorkflowResult(
        team_id=team_id.strip(), tournament_id=tournament_id.strip(), status=status.value
    )


async def reject(
    graph: GraphStore, tournament_id: str, team_id: str, caller: Identity
) -> WorkflowResult:
    status = await _review(graph, tournament_id, team_id, caller, ReviewAction.REJECT)
    logger.info(
        "Application %s -> %s rejected by %s", team_id, tournament_id, caller.username
    )
    return WorkflowResult(
        team_id=team_id.strip(), tournament_id=tournament_id.strip(), status=status.value
    )


# -----------------------------------------------------------------------------
# Administrative shortcuts. These write edges directly and skip the
# application states entirely.
# -----------------------------------------------------------------------------
async def _require_nodes(graph: GraphStore, checks: Sequence[tuple]) -> None:
    for column, value, label in checks:
        if await graph.query_one(select(column).where(column == value)) is None:
            raise NotFoundError(f"{label} '{value}' not found.", code="node_not_found")


async def join_team(
    graph: GraphStore,
    player_id: str,
    team_id: str,
    caller: Identity,
    *,
    captain: bool = False,
) -> JoinTeamOut:
    """Add a player to a team; with ``captain`` the player takes over captaincy."""

    _require_admin(caller)
    player_id = _require_id(player_id, "Player ID")
    team_id = _require_id(team_id, "Team ID")
    await _require_nodes(
        graph,
        [(Player.player_id, player_id, "Player"), (Team.team_id, team_id, "Team")],
    )

    await graph.merge(Membership, {"player_id": player_id, "team_id": team_id})
    if captain:
        await graph.mutate(
            delete(Captaincy).where(
                Captaincy.team_id == team_id, Captaincy.player_id != player_id
            )
        )
        await graph.merge(Captaincy, {"player_id": player_id, "team_id": team_id})

    return JoinTeamOut(player_id=player_id, team_id=team_id, captain=captain)


async def enter_tournament(
    graph: GraphStore,
    team_id: str,
    tournament_id: str,
    caller: Identity,
    *,
    approved: bool = True,
) -> EnterTournamentOut:
    _require_admin(caller)
    team_id = _require_id(team_id, "Team ID")
    tournament_id = _require_id(tournament_id, "Tournament ID")
    await _require_nodes(
        graph,
        [
            (Team.team_id, team_id, "Team"),
            (Tournament.tournament_id, tournament_id, "Tournament"),
        ],
    )

    values = {"approved": approved, "approved_at": utcnow() if approved else None}
    await graph.merge(
        Entry,
        {"team_id": team_id, "tournament_id": tournament_id},
        on_create=values,
        on_match=values,
    )
    return EnterTournamentOut(
        team_id=team_id, tournament_id=tournament_id, approved=approved
    )
