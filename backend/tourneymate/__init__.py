"""TourneyMate backend: tournaments, teams, applications, leaderboards and chat."""

__version__ = "0.1.0"
