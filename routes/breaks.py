from datetime import date, datetime, time, timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import Break, BreakAction, RoleEnum, User
from routes.common import current_user, current_user_id, extract_string, is_admin, parse_enum, parse_int, parse_iso_date
from schemas import BreakSchema, UserSummarySchema

bp = Blueprint("breaks", __name__, url_prefix="/api/breaks")
break_schema = BreakSchema()
breaks_schema = BreakSchema(many=True)
employees_schema = UserSummarySchema(many=True, only=("id", "first_name", "last_name", "email"))


def total_break_minutes(entries, *, until: datetime) -> int:
    """Whole minutes spent on break across one day's ``entries``.

    Punches are paired in timestamp order. A break left open counts up to
    ``until`` and a Break Out with no earlier punch counts from midnight.
    """

    ordered = sorted(entries, key=lambda entry: (entry.timestamp, entry.id or 0))
    total = timedelta()
    opened = None
    for index, entry in enumerate(ordered):
        if entry.action == BreakAction.BREAK_IN:
            if opened is None:
                opened = entry.timestamp
        elif opened is not None:
            total += entry.timestamp - opened
            opened = None
        elif index == 0:
            total += entry.timestamp - datetime.combine(entry.date, time.min)

    if opened is not None and until > opened:
        total += until - opened
    return int(total.total_seconds() // 60)


def break_minutes_on(employee_id: int, day: date, *, now: datetime | None = None) -> int:
    now = now or datetime.now()
    until = min(now, datetime.combine(day + timedelta(days=1), time.min))
    entries = Break.query.filter(Break.employee_id == employee_id, Break.date == day).all()
    return total_break_minutes(entries, until=until)


def _latest_break(employee_id: int) -> Break | None:
    return (
        Break.query.filter(Break.employee_id == employee_id)
        .order_by(Break.timestamp.desc(), Break.id.desc())
        .first()
    )


def _is_on_break(employee_id: int) -> bool:
    latest = _latest_break(employee_id)
    return latest is not None and latest.action == BreakAction.BREAK_IN


def _record_break(employee: User, payload: dict, *, added_by_id: int | None) -> Break:
    action = parse_enum(BreakAction, payload.get("action"), label="Action")
    reason = extract_string(
        payload.get("reason"),
        label="Reason",
        required=action == BreakAction.BREAK_IN,
        max_length=255,
    )

    on_break = _is_on_break(employee.id)
    if action == BreakAction.BREAK_IN and on_break:
        raise ValueError("Already on a break. Record a Break Out first.")
    if action == BreakAction.BREAK_OUT and not on_break:
        raise ValueError("There is no open break to end.")

    now = datetime.now()
    entry = Break(
        employee=employee,
        action=action,
        reason=reason,
        timestamp=now,
        date=now.date(),
        added_by_id=added_by_id,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


@bp.get("")
@jwt_required()
def list_breaks():
    """Newest punches first; admins may filter by ``employee`` and everyone by ``date``."""

    query = Break.query
    if is_admin():
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id:
            query = query.filter(Break.employee_id == employee_id)
    else:
        query = query.filter(Break.employee_id == current_user_id())

    try:
        day = parse_iso_date(request.args.get("date"), required=False)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400
    if day:
        query = query.filter(Break.date == day)

    entries = query.order_by(Break.timestamp.desc(), Break.id.desc()).all()
    return jsonify(breaks_schema.dump(entries))


@bp.post("")
@jwt_required()
def create_break():
    user = current_user()
    if user is None:
        return jsonify({"msg": "User not found"}), 404

    payload = request.get_json(silent=True) or {}
    try:
        entry = _record_break(user, payload, added_by_id=user.id)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400
    return jsonify(break_schema.dump(entry)), 201


@bp.get("/employees")
@jwt_required()
def list_break_employees():
    if not is_admin():
        return jsonify({"msg": "Admins only"}), 403

    employees = (
        User.query.filter(User.role == RoleEnum.employee, User.active.is_(True))
        .order_by(User.first_name, User.last_name, User.id)
        .all()
    )
    rows = employees_schema.dump(employees)
    for row, employee in zip(rows, employees):
        row["onBreak"] = _is_on_break(employee.id)
    return jsonify(rows)


@bp.post("/admin")
@jwt_required()
def create_break_for_employee():
    if not is_admin():
        return jsonify({"msg": "Admins only"}), 403

    payload = request.get_json(silent=True) or {}
    employee_id = parse_int(payload.get("employeeId"), min_value=1)
    employee = User.query.get(employee_id) if employee_id else None
    if employee is None or not employee.active:
        return jsonify({"msg": "Employee not found."}), 400

    try:
        entry = _record_break(employee, payload, added_by_id=current_user_id())
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    current_app.logger.info(
        "Break %s recorded for user %s by admin %s",
        entry.action.value,
        employee.id,
        current_user_id(),
    )
    return jsonify(break_schema.dump(entry)), 201


@bp.get("/duration")
@jwt_required()
def break_duration():
    employee_id = current_user_id()
    if is_admin() and request.args.get("employee"):
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id is None:
            return jsonify({"msg": "Employee not found."}), 400

    try:
        day = parse_iso_date(request.args.get("date"), required=False) or date.today()
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    return jsonify({"date": day.isoformat(), "totalBreakDuration": break_minutes_on(employee_id, day)})
