from __future__ import annotations

import logging
from typing import Optional, Sequence

from werkzeug.security import check_password_hash

from ..common.change_feed import ChangeEvent, ChangeFeed
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .context import AuthContext
from .model import TeamMember, User
from .repository import MemberRepository, UserRepository

logger = logging.getLogger(__name__)


def find_linked_member(members: MemberRepository, ctx: AuthContext) -> Optional[TeamMember]:
    """Team member behind the signed-in account, if any."""

    member = members.get_by_id(ctx.member_id) if ctx.member_id is not None else None
    return member or members.get_by_auth_user(ctx.user_id)


class AuthService:
    """Use case: sign in and resolve the caller's permissions."""

    def __init__(self, users: UserRepository, members: MemberRepository):
        self._users = users
        self._members = members

    def _is_approved(self, user: User, member: Optional[TeamMember]) -> bool:
        if user.role == Role.ADMIN:
            return True
        if member is not None:
            return member.is_approved
        # No member row: only employee accounts need one.
        return user.role != Role.EMPLOYEE

    def build_context(self, user: User) -> AuthContext:
        member = self._members.get_by_auth_user(user.user_id)
        return AuthContext(
            user_id=user.user_id,
            email=user.email,
            full_name=member.full_name if member else user.full_name,
            is_admin=user.role == Role.ADMIN,
            is_approved=self._is_approved(user, member),
            member_id=member.member_id if member else None,
        )

    def authenticate(self, email: str, password: str) -> AuthContext:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        ctx = self.build_context(user)
        logger.info("user %s signed in (admin=%s approved=%s)", user.user_id, ctx.is_admin, ctx.is_approved)
        return ctx


class MemberService:
    """Use case: manage the team roster (admin)."""

    def __init__(self, members: MemberRepository, *, feed: Optional[ChangeFeed] = None):
        self._members = members
        self._feed = feed

    def _publish(self, action: str, member_id: int, **payload) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent("team_members", action, member_id, payload))

    @staticmethod
    def require_admin(ctx: AuthContext) -> None:
        if not ctx.is_admin:
            raise AuthorizationError("Only admins can do this")

    @staticmethod
    def require_approved(ctx: AuthContext) -> None:
        if not ctx.is_approved:
            raise AuthorizationError("Your account is waiting for approval")

    def list_members(self) -> Sequence[TeamMember]:
        return self._members.list_all()

    def get_member(self, member_id: int) -> TeamMember:
        member = self._members.get_by_id(member_id)
        if not member:
            raise NotFoundError("Team member not found")
        return member

    def add_member(
        self,
        ctx: AuthContext,
        *,
        full_name: str,
        email: Optional[str] = None,
        role_title: Optional[str] = None,
        auth_user_id: Optional[int] = None,
        is_approved: bool = True,
    ) -> int:
        self.require_admin(ctx)
        full_name = require_non_empty(full_name, "Name")
        email = (email or "").strip().lower() or None

        if email and self._members.get_by_email(email):
            raise ValidationError("A team member with this email already exists")

        member_id = self._members.create_member(
            full_name=full_name,
            email=email,
            role_title=(role_title or "").strip() or "Member",
            auth_user_id=auth_user_id,
            is_approved=is_approved,
        )
        logger.info("member %s added by user %s", member_id, ctx.user_id)
        self._publish("insert", member_id, full_name=full_name)
        return member_id

    def set_approved(self, ctx: AuthContext, member_id: int, *, is_approved: bool) -> None:
        self.require_admin(ctx)
        self.get_member(member_id)
        self._members.set_approved(member_id, is_approved=is_approved)
        logger.info("member %s approval set to %s by user %s", member_id, is_approved, ctx.user_id)
        self._publish("update", member_id, is_approved=is_approved)

    def remove_member(self, ctx: AuthContext, member_id: int) -> None:
        self.require_admin(ctx)
        member = self.get_member(member_id)
        if member.member_id == ctx.member_id:
            raise ValidationError("You cannot remove yourself")
        if not self._members.delete_by_id(member_id):
            raise ValidationError("Failed to remove team member")
        logger.info("member %s removed by user %s", member_id, ctx.user_id)
        self._publish("delete", member_id)
