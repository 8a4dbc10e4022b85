import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tourneymate.limits import (
    CHAT_KEEP_LAST,
    CHAT_READ_COUNT,
    DETAIL_CHAT_N,
    DETAIL_TOP_N,
    HOME_CHAT_N,
    HOME_TOP_N,
    clamp,
)
from tourneymate.schemas import SessionUser
from tourneymate.services.authorization import (
    Identity,
    Role,
    can_apply_for_team,
    can_manage_scores,
    can_review_applications,
    is_admin,
)


def _who(username, role=Role.VIEWER):
    return Identity(username=username, display_name=username, role=role)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Admin", Role.ADMIN),
        ("admin", Role.ADMIN),
        (" HOST ", Role.HOST),
        ("Viewer", Role.VIEWER),
        ("superuser", Role.VIEWER),
        ("", Role.VIEWER),
        (None, Role.VIEWER),
    ],
)
def test_role_parse(raw, expected):
    assert Role.parse(raw) is expected


def test_role_is_valid():
    assert Role.is_valid("host")
    assert not Role.is_valid("owner")
    assert not Role.is_valid(None)


def test_identity_from_session_snapshot():
    user = SessionUser(username="ana", display_name="", role="admin")

    who = Identity.from_session(user, token="tok")

    assert who.role is Role.ADMIN
    assert who.display_name == "ana"
    assert who.token == "tok"
    assert is_admin(who)


def test_review_rule_hosts_and_admins():
    hosts = ["Ana", "Mila"]

    assert can_review_applications(_who("ana", Role.HOST), hosts)
    assert can_review_applications(_who("MILA"), hosts)
    assert not can_review_applications(_who("marko", Role.HOST), hosts)
    assert can_review_applications(_who("root", Role.ADMIN), [])


def test_apply_rule_captain_or_admin():
    assert can_apply_for_team(_who("marko"), ["marko"])
    assert not can_apply_for_team(_who("jelena"), ["marko"])
    assert not can_apply_for_team(_who("jelena"), [])
    assert can_apply_for_team(_who("root", Role.ADMIN), [])


def test_score_rule_matches_review_rule():
    assert can_manage_scores(_who("ana"), ["ana"])
    assert not can_manage_scores(_who("marko", Role.HOST), ["ana"])


@pytest.mark.parametrize(
    "value, expected",
    [(None, 5), (0, 5), (-1, 5), (3, 3), (50, 50), (51, 50), (10_000, 50)],
)
def test_clamp(value, expected):
    assert clamp(value, 5, 50) == expected


def test_configured_limits():
    assert (HOME_TOP_N.default, HOME_TOP_N.ceiling) == (5, 50)
    assert (DETAIL_TOP_N.default, DETAIL_TOP_N.ceiling) == (10, 50)
    assert (HOME_CHAT_N.default, HOME_CHAT_N.ceiling) == (30, 200)
    assert (DETAIL_CHAT_N.default, DETAIL_CHAT_N.ceiling) == (50, 200)
    assert (CHAT_KEEP_LAST.default, CHAT_KEEP_LAST.ceiling) == (200, 2000)
    assert (CHAT_READ_COUNT.default, CHAT_READ_COUNT.ceiling) == (50, 500)
    assert DETAIL_TOP_N.clamp(None) == 10
