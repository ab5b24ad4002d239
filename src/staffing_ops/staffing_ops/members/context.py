from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, MutableMapping, Optional

_SESSION_KEY = "auth"


@dataclass(frozen=True)
class AuthContext:
    """Who is calling, passed explicitly into every service call.

    Populated on sign-in, rebuilt from the Flask session per request and
    cleared on sign-out.
    """

    user_id: int
    email: str
    full_name: str
    is_admin: bool
    is_approved: bool
    member_id: Optional[int] = None

    def store(self, session: MutableMapping[str, Any]) -> None:
        session[_SESSION_KEY] = asdict(self)

    @classmethod
    def from_session(cls, session: MutableMapping[str, Any]) -> Optional["AuthContext"]:
        data = session.get(_SESSION_KEY)
        if not data:
            return None
        try:
            return cls(**data)
        except TypeError:
            # Shape changed between deployments; treat as signed out.
            return None

    @staticmethod
    def clear(session: MutableMapping[str, Any]) -> None:
        session.pop(_SESSION_KEY, None)
