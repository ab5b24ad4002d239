from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account. Plain data, no DB access."""

    user_id: int
    email: str
    full_name: str
    password_hash: str
    role: Role
    is_active: bool = True


@dataclass(frozen=True)
class TeamMember:
    """Someone on the team; attendance is tracked per member.

    ``auth_user_id`` links the member to the account they sign in with.
    """

    member_id: int
    full_name: str
    email: Optional[str]
    role_title: Optional[str]
    auth_user_id: Optional[int] = None
    is_approved: bool = False
