from __future__ import annotations

import csv
import io
from dataclasses import asdict

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import now_local
from ..common.web import approved_required, change_stream_response, handle_errors, optional_date, optional_int, payload
from ..container import Container
from ..core.enums import Metric, Period
from ..core.exceptions import ValidationError

CSV_FIELDS = [
    "work_date",
    "employee_id",
    "name",
    "status",
    "check_in",
    "check_out",
    "hours",
    "jobs",
    "session_count",
    "sessions",
    "notes",
]


def _period_arg(value: str | None) -> Period:
    try:
        return Period((value or Period.DAY.value).lower())
    except ValueError:
        raise ValidationError("Period must be one of day, week, month, custom") from None


def _metric_arg(value: str | None) -> Metric:
    try:
        return Metric((value or Metric.HOURS.value).lower())
    except ValueError:
        raise ValidationError("Metric must be hours or jobs") from None


def register(app: Flask, container: Container) -> None:
    def _report_args() -> dict:
        args = request.args
        return {
            "period": _period_arg(args.get("period")),
            "today": now_local().date(),
            "start": optional_date(args.get("start"), "start"),
            "end": optional_date(args.get("end"), "end"),
        }

    @app.route("/attendance/checkin", methods=["POST"], endpoint="checkin")
    @approved_required
    @handle_errors("Failed to check in")
    def checkin():
        container.attendance_service.check_in(g.auth)
        return jsonify({"success": True, "message": "Checked in"}), 200

    @app.route("/attendance/checkout", methods=["POST"], endpoint="checkout")
    @approved_required
    @handle_errors("Failed to check out")
    def checkout():
        jobs = optional_int(payload().get("jobs"), "jobs") or 0
        container.attendance_service.check_out(g.auth, jobs=jobs)
        return jsonify({"success": True, "message": "Checked out"}), 200

    @app.route("/attendance/today", methods=["GET"], endpoint="attendance_today")
    @approved_required
    @handle_errors("Failed to load today's attendance")
    def attendance_today():
        today = container.attendance_service.get_today(g.auth)
        return jsonify(
            {
                "success": True,
                "date": today.work_date.isoformat(),
                "state": today.state.value,
                "sessions": [asdict(s) for s in today.sessions],
                "hours": round(today.hours, 2),
                "jobs": today.jobs,
            }
        ), 200

    @app.route("/attendance/changes", methods=["GET"], endpoint="attendance_changes")
    @approved_required
    def attendance_changes():
        return change_stream_response(container.feed, "attendance")

    @app.route("/attendance/history", methods=["GET"], endpoint="attendance_history")
    @approved_required
    @handle_errors("Failed to load attendance history")
    def attendance_history():
        limit = optional_int(request.args.get("limit"), "limit")
        kwargs = {"limit": limit} if limit else {}
        rows = container.attendance_service.get_my_history(g.auth, **kwargs)
        return jsonify({"success": True, "rows": rows}), 200

    @app.route("/attendance", methods=["GET"], endpoint="attendance_report")
    @approved_required
    @handle_errors("Failed to load attendance")
    def attendance_report():
        employee_id = optional_int(request.args.get("employee_id"), "employee_id")
        report = container.report_service.build_report(employee_id=employee_id, **_report_args())
        return jsonify({"success": True, **asdict(report), "start": report.start.isoformat(), "end": report.end.isoformat()}), 200

    @app.route("/attendance/leaderboard", methods=["GET"], endpoint="attendance_leaderboard")
    @approved_required
    @handle_errors("Failed to load leaderboard")
    def attendance_leaderboard():
        metric = _metric_arg(request.args.get("metric"))
        ranking = container.report_service.leaderboard(metric=metric, **_report_args())
        return jsonify({"success": True, "metric": metric.value, "ranking": ranking}), 200

    @app.route("/attendance/export.csv", methods=["GET"], endpoint="attendance_export")
    @approved_required
    @handle_errors("Failed to export attendance")
    def attendance_export():
        employee_id = optional_int(request.args.get("employee_id"), "employee_id")
        report = container.report_service.build_report(employee_id=employee_id, **_report_args())

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in report.rows:
            writer.writerow(row)

        filename = f"attendance_{report.start.isoformat()}_{report.end.isoformat()}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/attendance", methods=["POST"], endpoint="attendance_mark")
    @approved_required
    @handle_errors("Failed to mark attendance")
    def attendance_mark():
        data = payload()
        employee_id = optional_int(data.get("employee_id"), "employee_id")
        if employee_id is None:
            raise ValidationError("Please select an employee")
        work_date = optional_date(data.get("date"), "date") or now_local().date()
        attendance_id = container.attendance_service.mark_attendance(
            g.auth,
            employee_id=employee_id,
            work_date=work_date,
            status=data.get("status", "present"),
            check_in_time=data.get("check_in_time"),
            check_out_time=data.get("check_out_time"),
            notes=data.get("notes"),
        )
        return jsonify({"success": True, "attendance_id": attendance_id}), 201

    @app.route("/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @approved_required
    @handle_errors("Failed to update attendance")
    def attendance_update(attendance_id: int):
        data = payload()
        container.attendance_service.update_attendance(
            g.auth,
            attendance_id,
            status=data.get("status", "present"),
            check_in_time=data.get("check_in_time"),
            check_out_time=data.get("check_out_time"),
            notes=data.get("notes"),
        )
        return jsonify({"success": True}), 200

    @app.route("/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @approved_required
    @handle_errors("Failed to delete attendance")
    def attendance_delete(attendance_id: int):
        container.attendance_service.delete_attendance(g.auth, attendance_id)
        return jsonify({"success": True}), 200
