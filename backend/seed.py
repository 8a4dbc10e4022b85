import asyncio
import logging

from tourneymate.graph import GraphStore
from tourneymate.models import (
    Captaincy,
    Entry,
    Hosting,
    Membership,
    Player,
    Team,
    Tournament,
    User,
)
from tourneymate.time_utils import utcnow

logger = logging.getLogger(__name__)

USERS = [
    # username, display name, role, password
    ("admin", "Administrator", "Admin", "admin"),
    ("host_ana", "Ana Host", "Host", "host_ana"),
    ("marko", "Marko", "Viewer", "marko"),
    ("jelena", "Jelena", "Viewer", "jelena"),
]

TOURNAMENTS = [
    ("t_chs_1", "Spring Chess Open", "chess", "Open"),
    ("t_bb_1", "City Basketball Cup", "basketball", "Live"),
    ("t_fb_1", "Winter Football League", "football", "Finished"),
]

TEAMS = [
    # team id, name, sport, captain
    ("team_ch1", "Knights", "chess", "marko"),
    ("team_ch2", "Bishops", "chess", "jelena"),
    ("team_bb1", "Hoopers", "basketball", "marko"),
]

HOSTS = [
    ("host_ana", "t_chs_1", "Host"),
    ("host_ana", "t_bb_1", "Host"),
    ("admin", "t_fb_1", "CoHost"),
]

ENTRIES = [
    ("team_bb1", "t_bb_1"),
]


async def seed_graph(graph: GraphStore) -> None:
    """Insert the demo users, tournaments and teams; existing rows are kept."""

    await graph.create_schema()

    for username, display_name, role, password in USERS:
        await graph.merge(
            User,
            {"username": username},
            on_create={"display_name": display_name, "role": role, "password": password},
        )
        await graph.merge(Player, {"player_id": username}, on_create={"name": display_name})

    for tid, name, sport, status in TOURNAMENTS:
        await graph.merge(
            Tournament,
            {"tournament_id": tid},
            on_create={"name": name, "sport": sport, "status": status},
        )

    for team_id, name, sport, captain in TEAMS:
        await graph.merge(Team, {"team_id": team_id}, on_create={"name": name, "sport": sport})
        await graph.merge(Membership, {"player_id": captain, "team_id": team_id})
        await graph.merge(Captaincy, {"player_id": captain, "team_id": team_id})

    for username, tid, role in HOSTS:
        await graph.merge(
            Hosting, {"username": username, "tournament_id": tid}, on_create={"role": role}
        )

    for team_id, tid in ENTRIES:
        await graph.merge(
            Entry,
            {"team_id": team_id, "tournament_id": tid},
            on_create={"approved": True, "approved_at": utcnow()},
        )

    logger.info(
        "Seeded %d users, %d tournaments, %d teams",
        len(USERS),
        len(TOURNAMENTS),
        len(TEAMS),
    )


async def main():
    graph = GraphStore()
    try:
        await seed_graph(graph)
    finally:
        await graph.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
