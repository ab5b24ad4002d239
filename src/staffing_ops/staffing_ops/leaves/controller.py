from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import approved_required, change_stream_response, handle_errors, optional_date, optional_int, payload
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/leaves", methods=["GET"], endpoint="leaves_list")
    @approved_required
    @handle_errors("Failed to load leave requests")
    def leaves_list():
        rows = container.leave_service.list_leaves(g.auth, status=request.args.get("status"))
        return jsonify({"success": True, "leaves": rows}), 200

    @app.route("/leaves", methods=["POST"], endpoint="leaves_create")
    @approved_required
    @handle_errors("Failed to create leave request")
    def leaves_create():
        data = payload()
        request_id = container.leave_service.create_leave(
            g.auth,
            employee_id=optional_int(data.get("employee_id"), "employee_id"),
            leave_type=data.get("leave_type"),
            start_date=optional_date(data.get("start_date"), "start_date"),
            end_date=optional_date(data.get("end_date"), "end_date"),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "request_id": request_id}), 201

    @app.route("/leaves/<int:request_id>/approve", methods=["POST"], endpoint="leaves_approve")
    @approved_required
    @handle_errors("Failed to update leave request")
    def leaves_approve(request_id: int):
        container.leave_service.approve_leave(g.auth, request_id)
        return jsonify({"success": True}), 200

    @app.route("/leaves/<int:request_id>/reject", methods=["POST"], endpoint="leaves_reject")
    @approved_required
    @handle_errors("Failed to update leave request")
    def leaves_reject(request_id: int):
        container.leave_service.reject_leave(g.auth, request_id)
        return jsonify({"success": True}), 200

    @app.route("/leaves/<int:request_id>", methods=["DELETE"], endpoint="leaves_delete")
    @approved_required
    @handle_errors("Failed to delete leave request")
    def leaves_delete(request_id: int):
        container.leave_service.delete_leave(g.auth, request_id)
        return jsonify({"success": True}), 200

    @app.route("/leaves/changes", methods=["GET"], endpoint="leaves_changes")
    @approved_required
    def leaves_changes():
        return change_stream_response(container.feed, "leave_requests")
