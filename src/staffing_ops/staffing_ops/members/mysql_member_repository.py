from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TeamMember, User
from .repository import MemberRepository, UserRepository


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        full_name=row["full_name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


def _to_member(row: dict) -> TeamMember:
    auth_user_id = row.get("auth_user_id")
    return TeamMember(
        member_id=int(row["member_id"]),
        full_name=row["full_name"],
        email=row.get("email"),
        role_title=row.get("role_title"),
        auth_user_id=int(auth_user_id) if auth_user_id is not None else None,
        is_approved=bool(row.get("is_approved", False)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, email, full_name, password_hash, role, is_active
                FROM users
                WHERE {where}=%s
                """,
                (value,),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)


class MySQLMemberRepository(MemberRepository):
    _COLUMNS = "member_id, full_name, email, role_title, auth_user_id, is_approved"

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[TeamMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {self._COLUMNS} FROM team_members WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_member(row) if row else None

    def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        return self._get_one("member_id", int(member_id))

    def get_by_auth_user(self, user_id: int) -> Optional[TeamMember]:
        return self._get_one("auth_user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[TeamMember]:
        return self._get_one("email", email)

    def list_all(self) -> Sequence[TeamMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {self._COLUMNS} FROM team_members ORDER BY full_name ASC, member_id ASC")
            return [_to_member(r) for r in fetchall(cur)]

    def create_member(
        self,
        *,
        full_name: str,
        email: Optional[str],
        role_title: Optional[str],
        auth_user_id: Optional[int] = None,
        is_approved: bool = False,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO team_members(full_name, email, role_title, auth_user_id, is_approved)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (full_name, email, role_title, auth_user_id, int(bool(is_approved))),
            )
            return int(cur.lastrowid)

    def set_approved(self, member_id: int, *, is_approved: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE team_members SET is_approved=%s WHERE member_id=%s",
                (int(bool(is_approved)), int(member_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, member_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM team_members WHERE member_id=%s", (int(member_id),))
            return cur.rowcount > 0
