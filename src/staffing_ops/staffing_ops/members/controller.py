from __future__ import annotations

from dataclasses import asdict

from flask import Flask, g, jsonify, session

from ..common.web import approved_required, change_stream_response, handle_errors, login_required, payload
from ..container import Container
from .context import AuthContext


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["POST"], endpoint="login")
    @handle_errors("Sign-in failed, please try again")
    def login():
        data = payload()
        ctx = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        ctx.store(session)

        return jsonify({"success": True, "user": asdict(ctx)}), 200

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        AuthContext.clear(session)
        session.clear()
        return jsonify({"success": True}), 200

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify({"success": True, "user": asdict(g.auth)}), 200

    @app.route("/members", methods=["GET"], endpoint="members_list")
    @approved_required
    @handle_errors("Failed to load team members")
    def members_list():
        members = container.member_service.list_members()
        return jsonify({"success": True, "members": [asdict(m) for m in members]}), 200

    @app.route("/members/changes", methods=["GET"], endpoint="members_changes")
    @approved_required
    def members_changes():
        return change_stream_response(container.feed, "team_members")

    @app.route("/members", methods=["POST"], endpoint="members_create")
    @approved_required
    @handle_errors("Failed to add team member")
    def members_create():
        data = payload()
        member_id = container.member_service.add_member(
            g.auth,
            full_name=data.get("full_name", ""),
            email=data.get("email"),
            role_title=data.get("role_title"),
        )
        return jsonify({"success": True, "member_id": member_id}), 201

    @app.route("/members/<int:member_id>/approve", methods=["POST"], endpoint="members_approve")
    @approved_required
    @handle_errors("Failed to update approval")
    def members_approve(member_id: int):
        data = payload()
        approved = data.get("is_approved", True)
        if isinstance(approved, str):
            approved = approved.lower() in {"1", "true", "yes", "on"}
        container.member_service.set_approved(g.auth, member_id, is_approved=bool(approved))
        return jsonify({"success": True}), 200

    @app.route("/members/<int:member_id>", methods=["DELETE"], endpoint="members_delete")
    @approved_required
    @handle_errors("Failed to remove team member")
    def members_delete(member_id: int):
        container.member_service.remove_member(g.auth, member_id)
        return jsonify({"success": True}), 200
