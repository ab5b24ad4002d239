from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Optional

from flask import Response, g, jsonify, request, session, stream_with_context

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..members.context import AuthContext
from .change_feed import ChangeFeed, event_stream
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def handle_errors(generic_message: str):
    """Map domain errors to JSON responses; anything else is a generic 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                for error_type, status in _STATUS_BY_ERROR:
                    if isinstance(e, error_type):
                        return error_response(str(e), status)
                return error_response(str(e), 400)
            except Exception:
                logger.exception("%s failed", request.endpoint)
                return error_response(generic_message, 500)

        return wrapper

    return decorator


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        ctx = AuthContext.from_session(session)
        if ctx is None:
            return error_response("Please sign in to continue", 401)
        g.auth = ctx
        return view(*args, **kwargs)

    return wrapper


def approved_required(view):
    """Signed in and approved (admins are always approved)."""

    @login_required
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not g.auth.is_approved:
            return error_response("Your account is waiting for approval", 403)
        return view(*args, **kwargs)

    return wrapper


def payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict() or {}


def optional_date(value: Optional[str], field_name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date") from None


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None


def change_stream_response(feed: ChangeFeed, *tables: str) -> Response:
    """``text/event-stream`` of row changes, subscribed for the life of the request."""

    return Response(
        stream_with_context(event_stream(feed, tables)),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
