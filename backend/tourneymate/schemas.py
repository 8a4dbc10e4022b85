from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .time_utils import require_utc


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys; accepts either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Cached values
# -----------------------------------------------------------------------------
class ChatMessage(CamelModel):
    user_id: str
    display_name: str
    text: str
    timestamp_utc: datetime

    @field_validator("timestamp_utc")
    @classmethod
    def _validate_timestamp(cls, value: datetime) -> datetime:
        return require_utc(value, field_name="timestampUtc")


class SessionUser(CamelModel):
    """Identity snapshot stored under a session token."""

    model_config = ConfigDict(frozen=True)

    username: str
    display_name: str
    role: str


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------
class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""


class LoginResponse(CamelModel):
    token: str
    expires_in_seconds: int
    user: SessionUser


class OkResponse(CamelModel):
    ok: bool = True


# -----------------------------------------------------------------------------
# Chat and leaderboard
# -----------------------------------------------------------------------------
class SendChatMessage(CamelModel):
    text: str = ""


class UpsertScore(CamelModel):
    tournament_id: str = Field(..., min_length=1)
    team_id: str = Field(..., min_length=1)
    score: float = Field(..., allow_inf_nan=False)


class LeaderboardEntryOut(CamelModel):
    team_id: str
    score: float


# -----------------------------------------------------------------------------
# Read views
# -----------------------------------------------------------------------------
class HostOut(CamelModel):
    username: str
    display_name: str


class TeamOut(CamelModel):
    team_id: str
    name: str
    sport: str


class ApplicationSummaryOut(CamelModel):
    team_id: str
    name: str
    sport: str
    status: str


class LeaderboardRowOut(CamelModel):
    team_id: str
    team_name: str
    score: float


class HomeTournamentOut(CamelModel):
    tournament_id: str
    name: str
    sport: str
    status: str
    hosts: List[HostOut]
    entered_teams: List[TeamOut]
    applications: List[ApplicationSummaryOut]
    leaderboard_top: List[LeaderboardRowOut]


class HomeOut(CamelModel):
    open: List[HomeTournamentOut]
    live: List[HomeTournamentOut]
    finished: List[HomeTournamentOut]
    global_chat: List[ChatMessage]


class TournamentDetailOut(CamelModel):
    tournament_id: str
    name: str
    sport: str
    status: str
    hosts: List[HostOut]
    entered_teams: List[TeamOut]
    applications: List[ApplicationSummaryOut]
    leaderboard: List[LeaderboardRowOut]
    chat: List[ChatMessage]


class TournamentOut(CamelModel):
    tournament_id: str
    name: str
    sport: str
    status: str


class TournamentTeamsOut(CamelModel):
    tournament_id: str
    teams: List[TeamOut]


class PlayerOut(CamelModel):
    player_id: str
    name: str


class CaptainOut(CamelModel):
    team_id: str
    captain: PlayerOut


# -----------------------------------------------------------------------------
# Application workflow
# -----------------------------------------------------------------------------
class TeamCreate(CamelModel):
    name: str = ""
    sport: str = ""


class TeamCreated(CamelModel):
    team_id: str
    name: str
    sport: str
    captain_username: str


class ApplicationOut(CamelModel):
    team_id: str
    name: str
    sport: str
    status: str
    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None


class WorkflowResult(CamelModel):
    ok: bool = True
    team_id: str
    tournament_id: str
    status: str


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
class UserOut(CamelModel):
    username: str
    display_name: str
    role: str


class UserCreate(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = None
    password: str = Field(..., min_length=1)
    role: str = "Viewer"


class RoleUpdate(CamelModel):
    role: str = ""


class RoleUpdated(CamelModel):
    username: str
    role: str
    updated: bool = True


class PlayerCreate(CamelModel):
    player_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class TeamNodeCreate(CamelModel):
    team_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sport: str = Field(..., min_length=1)


class TournamentCreate(CamelModel):
    tournament_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sport: str = Field(..., min_length=1)
    status: str = "Open"


class TournamentStatusUpdate(CamelModel):
    status: str = ""


class HostAssign(CamelModel):
    username: str = Field(..., min_length=1)
    role: str = "Host"


class HostAssigned(CamelModel):
    username: str
    tournament_id: str
    role: str


class JoinTeamOut(CamelModel):
    ok: bool = True
    player_id: str
    team_id: str
    captain: bool


class EnterTournamentOut(CamelModel):
    ok: bool = True
    team_id: str
    tournament_id: str
    approved: bool
