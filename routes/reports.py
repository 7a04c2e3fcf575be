from datetime import date

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from attendance_statistics import compute_report_hours
from extensions import db
from models import DailyReport, User
from routes.breaks import break_minutes_on
from routes.common import current_user_id, extract_string, is_admin, paginate, parse_int, parse_iso_date
from schemas import DailyReportSchema

bp = Blueprint("reports", __name__, url_prefix="/api/reports")
report_schema = DailyReportSchema()
reports_schema = DailyReportSchema(many=True)


def _parse_break_minutes(value) -> int:
    if value in (None, ""):
        return 0
    if isinstance(value, bool):
        raise ValueError("Break duration must be a whole number of minutes.")
    try:
        minutes = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Break duration must be a whole number of minutes.") from exc
    if minutes < 0:
        raise ValueError("Break duration cannot be negative.")
    return minutes


def _apply_report_payload(report: DailyReport, payload: dict, *, creating: bool) -> None:
    if creating or "description" in payload:
        report.description = extract_string(payload.get("description"), label="Description", required=True)
    if creating or "reportDate" in payload:
        report.report_date = parse_iso_date(payload.get("reportDate"), label="Report date", required=False) or date.today()
    if creating or "startTime" in payload:
        report.start_time = extract_string(payload.get("startTime"), label="Start time", required=True, max_length=5)
    if creating or "endTime" in payload:
        report.end_time = extract_string(payload.get("endTime"), label="End time", required=True, max_length=5)
    if creating or "breakDuration" in payload:
        value = payload.get("breakDuration")
        if creating and value in (None, ""):
            report.break_duration = break_minutes_on(report.employee_id, report.report_date)
        else:
            report.break_duration = _parse_break_minutes(value)

    hours = compute_report_hours(report.start_time, report.end_time, report.break_duration)
    if hours is None:
        raise ValueError("Start and end times must be HH:MM and the end time must be after the start time.")
    total, working = hours
    if report.break_duration >= _minutes(total):
        raise ValueError("Break duration must be shorter than the time worked.")
    report.total_hours, report.working_hours = total, working


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _can_touch(report: DailyReport) -> bool:
    return is_admin() or report.employee_id == current_user_id()


@bp.get("")
@jwt_required()
def list_reports():
    """Reports filtered by ``from_date``, ``to_date`` and (for admins) ``employee``."""

    query = DailyReport.query
    try:
        from_date = parse_iso_date(request.args.get("from_date"), label="from_date", required=False)
        to_date = parse_iso_date(request.args.get("to_date"), label="to_date", required=False)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    if from_date and to_date and to_date < from_date:
        return jsonify({"msg": "to_date cannot be before from_date."}), 400
    if from_date:
        query = query.filter(DailyReport.report_date >= from_date)
    if to_date:
        query = query.filter(DailyReport.report_date <= to_date)

    if is_admin():
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id:
            query = query.filter(DailyReport.employee_id == employee_id)
    else:
        query = query.filter(DailyReport.employee_id == current_user_id())

    query = query.order_by(DailyReport.report_date.desc(), DailyReport.id.desc())

    if "page" not in request.args:
        return jsonify({"reports": reports_schema.dump(query.all())})

    reports, meta = paginate(query)
    return jsonify({"reports": reports_schema.dump(reports), **meta})


@bp.get("/<int:report_id>")
@jwt_required()
def get_report(report_id: int):
    report = DailyReport.query.get_or_404(report_id)
    if not _can_touch(report):
        return jsonify({"msg": "You can only view your own reports."}), 403
    return jsonify(report_schema.dump(report))


@bp.post("")
@jwt_required()
def create_report():
    payload = request.get_json(silent=True) or {}

    employee_id = current_user_id()
    if is_admin() and payload.get("employee") not in (None, ""):
        employee_id = parse_int(payload.get("employee"), min_value=1)
        if employee_id is None or User.query.get(employee_id) is None:
            return jsonify({"msg": "Employee not found."}), 400

    report = DailyReport(employee_id=employee_id)
    try:
        _apply_report_payload(report, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(report)
    db.session.commit()
    return jsonify(report_schema.dump(report)), 201


@bp.put("/<int:report_id>")
@jwt_required()
def update_report(report_id: int):
    report = DailyReport.query.get_or_404(report_id)
    if not _can_touch(report):
        return jsonify({"msg": "You can only edit your own reports."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        _apply_report_payload(report, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(report_schema.dump(report))


@bp.delete("/<int:report_id>")
@jwt_required()
def delete_report(report_id: int):
    report = DailyReport.query.get_or_404(report_id)
    if not _can_touch(report):
        return jsonify({"msg": "You can only delete your own reports."}), 403

    db.session.delete(report)
    db.session.commit()
    return jsonify({"msg": "Report deleted"})
