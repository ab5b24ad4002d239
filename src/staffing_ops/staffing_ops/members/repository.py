from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import TeamMember, User


class UserRepository(Protocol):
    """Repository interface for login accounts.

    Services depend on this interface rather than on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError


class MemberRepository(Protocol):
    def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        raise NotImplementedError

    def get_by_auth_user(self, user_id: int) -> Optional[TeamMember]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[TeamMember]:
        raise NotImplementedError

    def list_all(self) -> Sequence[TeamMember]:
        raise NotImplementedError

    def create_member(
        self,
        *,
        full_name: str,
        email: Optional[str],
        role_title: Optional[str],
        auth_user_id: Optional[int] = None,
        is_approved: bool = False,
    ) -> int:
        raise NotImplementedError

    def set_approved(self, member_id: int, *, is_approved: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, member_id: int) -> bool:
        raise NotImplementedError
