"""Leave requests and their approval workflow."""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import Leave, LeaveStatus, LeaveType, User
from routes.common import (
    clean_string,
    current_user_id,
    extract_string,
    is_admin,
    normalize_bool,
    paginate,
    parse_enum,
    parse_int,
    parse_iso_date,
)
from schemas import LeaveSchema

bp = Blueprint("leaves", __name__, url_prefix="/api/leaves")
leave_schema = LeaveSchema()
leaves_schema = LeaveSchema(many=True)


def _apply_leave_payload(leave: Leave, payload: dict, *, creating: bool) -> None:
    if creating or "startDate" in payload:
        leave.start_date = parse_iso_date(payload.get("startDate"), label="Start date")
    if creating or "endDate" in payload:
        leave.end_date = parse_iso_date(payload.get("endDate"), label="End date")
    if creating or "leaveType" in payload:
        leave.leave_type = parse_enum(LeaveType, payload.get("leaveType"), label="Leave type", default=LeaveType.VACATION)
    if creating or "reason" in payload:
        leave.reason = extract_string(payload.get("reason"), label="Reason", max_length=2000)
    if creating or "isHalfDay" in payload:
        leave.is_half_day = normalize_bool(payload.get("isHalfDay", False), label="isHalfDay")

    if leave.end_date < leave.start_date:
        raise ValueError("End date cannot be before start date.")
    if leave.is_half_day and leave.start_date != leave.end_date:
        raise ValueError("A half-day leave must start and end on the same day.")


@bp.get("")
@jwt_required()
def list_leaves():
    """Employees see their own leaves; admins see everyone's."""

    query = Leave.query
    if is_admin():
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id:
            query = query.filter(Leave.employee_id == employee_id)
    else:
        query = query.filter(Leave.employee_id == current_user_id())

    status_value = clean_string(request.args.get("status"))
    if status_value:
        try:
            query = query.filter(Leave.status == parse_enum(LeaveStatus, status_value, label="Status"))
        except ValueError as exc:
            return jsonify({"msg": str(exc)}), 400

    query = query.order_by(Leave.start_date.desc(), Leave.id.desc())

    if "page" not in request.args:
        return jsonify({"leaves": leaves_schema.dump(query.all())})

    leaves, meta = paginate(query)
    return jsonify({"leaves": leaves_schema.dump(leaves), **meta})


@bp.get("/<int:leave_id>")
@jwt_required()
def get_leave(leave_id: int):
    leave = Leave.query.get_or_404(leave_id)
    if not is_admin() and leave.employee_id != current_user_id():
        return jsonify({"msg": "You can only view your own leaves."}), 403
    return jsonify(leave_schema.dump(leave))


@bp.post("")
@jwt_required()
def request_leave():
    payload = request.get_json(silent=True) or {}

    employee_id = current_user_id()
    if is_admin() and payload.get("employee") not in (None, ""):
        employee_id = parse_int(payload.get("employee"), min_value=1)
        if employee_id is None or User.query.get(employee_id) is None:
            return jsonify({"msg": "Employee not found."}), 400

    leave = Leave(employee_id=employee_id, status=LeaveStatus.PENDING)
    try:
        _apply_leave_payload(leave, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(leave)
    db.session.commit()
    return jsonify(leave_schema.dump(leave)), 201


@bp.put("/<int:leave_id>")
@jwt_required()
def update_leave(leave_id: int):
    leave = Leave.query.get_or_404(leave_id)
    if leave.employee_id != current_user_id():
        return jsonify({"msg": "You can only edit your own leaves."}), 403
    if leave.status != LeaveStatus.PENDING:
        return jsonify({"msg": "Only pending leaves can be edited."}), 400

    payload = request.get_json(silent=True) or {}
    try:
        _apply_leave_payload(leave, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(leave_schema.dump(leave))


@bp.patch("/<int:leave_id>/status")
@jwt_required()
def review_leave(leave_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can review leaves."}), 403

    leave = Leave.query.get_or_404(leave_id)
    if leave.status != LeaveStatus.PENDING:
        return jsonify({"msg": f"Leave has already been {leave.status.value.lower()}."}), 400

    payload = request.get_json(silent=True) or {}
    try:
        status = parse_enum(LeaveStatus, payload.get("status"), label="Status")
        if status == LeaveStatus.PENDING:
            raise ValueError("Status must be Approved or Rejected.")
        comments = extract_string(payload.get("comments"), label="Comments", max_length=2000)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    leave.status = status
    leave.comments = comments
    leave.reviewed_by_id = current_user_id()
    leave.reviewed_at = datetime.utcnow()
    db.session.commit()
    return jsonify(leave_schema.dump(leave))


@bp.delete("/<int:leave_id>")
@jwt_required()
def delete_leave(leave_id: int):
    leave = Leave.query.get_or_404(leave_id)
    if not is_admin():
        if leave.employee_id != current_user_id():
            return jsonify({"msg": "You can only delete your own leaves."}), 403
        if leave.status != LeaveStatus.PENDING:
            return jsonify({"msg": "Only pending leaves can be deleted."}), 400

    db.session.delete(leave)
    db.session.commit()
    return jsonify({"msg": "Leave deleted"})
