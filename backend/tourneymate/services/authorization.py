"""Caller identity and the authorization rules applied to it.

Every rule is a plain function of the identity and the resource facts it
needs, so it can be checked without a request or a store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from ..schemas import SessionUser

logger = logging.getLogger(__name__)


class Role(str, Enum):
    VIEWER = "Viewer"
    HOST = "Host"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Case-insensitive lookup; unknown values fall back to Viewer."""

        normalized = (value or "").strip().lower()
        for role in cls:
            if role.value.lower() == normalized:
                return role
        logger.warning("Unknown role %r; treating caller as Viewer", value)
        return cls.VIEWER

    @classmethod
    def is_valid(cls, value: str | None) -> bool:
        normalized = (value or "").strip().lower()
        return any(role.value.lower() == normalized for role in cls)


class HostingRole(str, Enum):
    HOST = "Host"
    COHOST = "CoHost"


@dataclass(frozen=True)
class Identity:
    username: str
    display_name: str
    role: Role
    token: str | None = None

    @classmethod
    def from_session(cls, user: SessionUser, token: str | None = None) -> "Identity":
        return cls(
            username=user.username,
            display_name=user.display_name or user.username,
            role=Role.parse(user.role),
            token=token,
        )


def _casefold_all(values: Iterable[str | None]) -> set[str]:
    return {v.casefold() for v in values if v}


def is_admin(identity: Identity) -> bool:
    return identity.role is Role.ADMIN


def can_review_applications(identity: Identity, host_usernames: Iterable[str]) -> bool:
    """Hosts and co-hosts of a tournament may review its applications; so may Admins."""

    if is_admin(identity):
        return True
    return identity.username.casefold() in _casefold_all(host_usernames)


def can_apply_for_team(identity: Identity, captain_ids: Iterable[str]) -> bool:
    """Only the team's captain (or an Admin) may apply on its behalf."""

    if is_admin(identity):
        return True
    return identity.username.casefold() in _casefold_all(captain_ids)


def can_manage_scores(identity: Identity, host_usernames: Iterable[str]) -> bool:
    return can_review_applications(identity, host_usernames)
