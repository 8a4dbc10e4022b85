from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.sql import func

from .graph import Base


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
class User(Base):
    __tablename__ = "tm_user"
    username = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="Viewer")
    # Plaintext, compared as-is at login.
    password = Column(String, nullable=False)


class Player(Base):
    """Player facet of a user; ``player_id`` is the owning username."""

    __tablename__ = "tm_player"
    player_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)


class Team(Base):
    __tablename__ = "tm_team"
    team_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    sport = Column(String, nullable=False)


class Tournament(Base):
    __tablename__ = "tm_tournament"
    tournament_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    sport = Column(String, nullable=False)
    status = Column(String, nullable=False, default="Open")  # Open | Live | Finished


# -----------------------------------------------------------------------------
# Edges. The (source, target) pair is the primary key of every edge table.
# -----------------------------------------------------------------------------
class Hosting(Base):
    __tablename__ = "tm_hosts"
    username = Column(String, ForeignKey("tm_user.username"), primary_key=True)
    tournament_id = Column(
        String, ForeignKey("tm_tournament.tournament_id"), primary_key=True
    )
    role = Column(String, nullable=False, default="Host")  # Host | CoHost

    __table_args__ = (Index("ix_tm_hosts_tournament", "tournament_id"),)


class Membership(Base):
    __tablename__ = "tm_member_of"
    player_id = Column(String, ForeignKey("tm_player.player_id"), primary_key=True)
    team_id = Column(String, ForeignKey("tm_team.team_id"), primary_key=True)


class Captaincy(Base):
    __tablename__ = "tm_captain_of"
    player_id = Column(String, ForeignKey("tm_player.player_id"), primary_key=True)
    team_id = Column(String, ForeignKey("tm_team.team_id"), primary_key=True)

    __table_args__ = (Index("ix_tm_captain_of_team", "team_id"),)


class Application(Base):
    __tablename__ = "tm_applied_for"
    team_id = Column(String, ForeignKey("tm_team.team_id"), primary_key=True)
    tournament_id = Column(
        String, ForeignKey("tm_tournament.tournament_id"), primary_key=True
    )
    status = Column(String, nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_tm_applied_for_tournament_status", "tournament_id", "status"),
    )


class Entry(Base):
    __tablename__ = "tm_enters"
    team_id = Column(String, ForeignKey("tm_team.team_id"), primary_key=True)
    tournament_id = Column(
        String, ForeignKey("tm_tournament.tournament_id"), primary_key=True
    )
    approved = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_tm_enters_tournament", "tournament_id"),)
