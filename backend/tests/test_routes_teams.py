import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


def _create_team(client, headers, name="Rooks", sport="chess"):
    resp = client.post("/api/teams", json={"name": name, "sport": sport}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_team_and_list_my_teams(client, seeded, login):
    marko = login("marko")

    created = _create_team(client, marko)

    assert created["teamId"].startswith("team_")
    assert created["captainUsername"] == "marko"
    mine = client.get("/api/teams/my-teams", headers=marko).json()
    assert {t["name"] for t in mine} == {"Hoopers", "Knights", "Rooks"}

    everyone = client.get("/api/teams").json()
    assert created["teamId"] in {t["teamId"] for t in everyone}

    captain = client.get(f"/api/teams/{created['teamId']}/captain").json()
    assert captain["captain"] == {"playerId": "marko", "name": "Marko"}


def test_create_team_requires_login_and_fields(client, seeded, login):
    resp = client.post("/api/teams", json={"name": "X", "sport": "chess"})
    assert resp.status_code == 401

    resp = client.post("/api/teams", json={"name": " ", "sport": "chess"}, headers=login("marko"))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Team name is required."}


def test_captain_lookup_for_unknown_team(client, seeded):
    resp = client.get("/api/teams/team_nope/captain")

    assert resp.status_code == 404
    assert "team_nope" in resp.json()["error"]


def test_apply_approve_flow(client, seeded, login):
    marko = login("marko")
    host = login("host_ana")

    resp = client.post("/api/teams/team_ch1/apply/t_chs_1", headers=marko)
    assert resp.status_code == 200
    assert resp.json() == {
        "ok": True,
        "teamId": "team_ch1",
        "tournamentId": "t_chs_1",
        "status": "Pending",
    }

    pending = client.get("/api/teams/applications/t_chs_1", headers=host).json()
    assert [(a["teamId"], a["status"]) for a in pending] == [("team_ch1", "Pending")]

    resp = client.post("/api/teams/applications/t_chs_1/team_ch1/approve", headers=host)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Approved"

    teams = client.get("/api/tournaments/t_chs_1/teams").json()
    assert [t["teamId"] for t in teams["teams"]] == ["team_ch1"]

    again = client.post("/api/teams/applications/t_chs_1/team_ch1/approve", headers=host)
    assert again.status_code == 404
    assert again.json() == {"error": "Pending application not found."}

    assert client.get("/api/teams/applications/t_chs_1", headers=host).json() == []
    everything = client.get(
        "/api/teams/applications/t_chs_1", params={"status": "all"}, headers=host
    ).json()
    assert [a["status"] for a in everything] == ["Approved"]


def test_apply_errors_map_to_status_codes(client, seeded, login):
    marko = login("marko")
    jelena = login("jelena")

    wrong_sport = client.post("/api/teams/team_bb1/apply/t_chs_1", headers=marko)
    assert wrong_sport.status_code == 400

    resp = client.post(
        "/api/admin/tournaments",
        json={"tournamentId": "t_chs_2", "name": "Closed Cup", "sport": "chess", "status": "Finished"},
        headers=login("admin"),
    )
    assert resp.status_code == 200
    not_open = client.post("/api/teams/team_ch1/apply/t_chs_2", headers=marko)
    assert not_open.status_code == 400
    assert "Open" in not_open.json()["error"]

    not_captain = client.post("/api/teams/team_ch1/apply/t_chs_1", headers=jelena)
    assert not_captain.status_code == 403

    first = client.post("/api/teams/team_ch2/apply/t_chs_1", headers=jelena)
    assert first.status_code == 200
    duplicate = client.post("/api/teams/team_ch2/apply/t_chs_1", headers=jelena)
    assert duplicate.status_code == 409


def test_reject_blocks_reapply(client, seeded, login):
    jelena = login("jelena")
    host = login("host_ana")
    client.post("/api/teams/team_ch2/apply/t_chs_1", headers=jelena)

    resp = client.post("/api/teams/applications/t_chs_1/team_ch2/reject", headers=host)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Rejected"

    rejected = client.get(
        "/api/teams/applications/t_chs_1", params={"status": "rejected"}, headers=host
    ).json()
    assert [a["teamId"] for a in rejected] == ["team_ch2"]
    assert client.get("/api/tournaments/t_chs_1/teams").json()["teams"] == []

    again = client.post("/api/teams/team_ch2/apply/t_chs_1", headers=jelena)
    assert again.status_code == 409


def test_review_requires_host_or_admin(client, seeded, login):
    marko = login("marko")
    client.post("/api/teams/team_ch1/apply/t_chs_1", headers=marko)

    resp = client.get("/api/teams/applications/t_chs_1", headers=marko)
    assert resp.status_code == 403

    resp = client.post("/api/teams/applications/t_chs_1/team_ch1/reject", headers=marko)
    assert resp.status_code == 403

    resp = client.get("/api/teams/applications/t_chs_1", headers=login("admin"))
    assert resp.status_code == 200


def test_application_status_filter_is_validated(client, seeded, login):
    resp = client.get(
        "/api/teams/applications/t_chs_1",
        params={"status": "maybe"},
        headers=login("host_ana"),
    )

    assert resp.status_code == 400
