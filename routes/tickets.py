from datetime import date
from decimal import Decimal

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from extensions import db
from models import Priority, Ticket, TicketProgress, User
from routes.common import (
    clean_string,
    current_user_id,
    extract_string,
    is_admin,
    paginate,
    parse_amount,
    parse_enum,
    parse_int,
    parse_iso_date,
)
from schemas import TicketSchema

bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")
ticket_schema = TicketSchema()
tickets_schema = TicketSchema(many=True)

MAX_DAILY_HOURS = Decimal("24")


def _resolve_assignee(value) -> User | None:
    if value in (None, ""):
        return None
    employee_id = parse_int(value, min_value=1)
    user = User.query.get(employee_id) if employee_id else None
    if user is None:
        raise ValueError("Assigned employee not found.")
    return user


def _apply_ticket_payload(ticket: Ticket, payload: dict, *, creating: bool) -> None:
    if creating or "title" in payload:
        ticket.title = extract_string(payload.get("title"), label="Title", required=True, max_length=200)
    if creating or "description" in payload:
        ticket.description = extract_string(payload.get("description"), label="Description")
    if creating or "priority" in payload:
        ticket.priority = parse_enum(Priority, payload.get("priority"), label="Priority", default=Priority.MEDIUM)
    if creating or "dueDate" in payload:
        ticket.due_date = parse_iso_date(payload.get("dueDate"), label="Due date", required=False)
    if creating or "employee" in payload:
        ticket.employee = _resolve_assignee(payload.get("employee"))


def _parse_progress_entry(ticket: Ticket, payload: dict) -> TicketProgress:
    """Validate a progress update against the ticket's history."""

    progress = parse_int(payload.get("progress"))
    if progress is None or isinstance(payload.get("progress"), bool):
        raise ValueError("Progress must be a whole number.")
    if progress < 0 or progress > 100:
        raise ValueError("Progress must be between 0 and 100.")
    if progress < ticket.current_progress:
        raise ValueError(f"Progress cannot go below the current {ticket.current_progress}%.")

    day = parse_iso_date(payload.get("date"), required=False) or date.today()
    last = ticket.last_progress
    if last is not None and day < last.date:
        raise ValueError(f"Date cannot be before the last update on {last.date.isoformat()}.")

    raw_hours = payload.get("workingHours")
    hours = Decimal("0") if raw_hours in (None, "") else parse_amount(raw_hours, label="Working hours")
    if hours > MAX_DAILY_HOURS:
        raise ValueError("Working hours cannot exceed 24.")

    return TicketProgress(date=day, working_hours=hours, progress=progress, updated_by_id=current_user_id())


@bp.get("")
@jwt_required()
def list_tickets():
    query = Ticket.query
    if is_admin():
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id:
            query = query.filter(Ticket.employee_id == employee_id)
    else:
        query = query.filter(Ticket.employee_id == current_user_id())

    priority = clean_string(request.args.get("priority"))
    if priority:
        try:
            query = query.filter(Ticket.priority == parse_enum(Priority, priority, label="Priority"))
        except ValueError as exc:
            return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(or_(Ticket.title.ilike(f"%{text}%"), Ticket.description.ilike(f"%{text}%")))

    query = query.order_by(Ticket.created_at.desc(), Ticket.id.desc())
    if "page" not in request.args:
        return jsonify({"tickets": tickets_schema.dump(query.all())})

    tickets, meta = paginate(query)
    return jsonify({"tickets": tickets_schema.dump(tickets), **meta})


@bp.get("/<int:ticket_id>")
@jwt_required()
def get_ticket(ticket_id: int):
    ticket = Ticket.query.get_or_404(ticket_id)
    if not is_admin() and ticket.employee_id != current_user_id():
        return jsonify({"msg": "You can only view tickets assigned to you."}), 403
    return jsonify(ticket_schema.dump(ticket))


@bp.post("")
@jwt_required()
def create_ticket():
    if not is_admin():
        return jsonify({"msg": "Only administrators can create tickets."}), 403

    payload = request.get_json(silent=True) or {}
    ticket = Ticket(created_by_id=current_user_id())
    try:
        _apply_ticket_payload(ticket, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(ticket)
    db.session.commit()
    return jsonify(ticket_schema.dump(ticket)), 201


@bp.put("/<int:ticket_id>")
@jwt_required()
def update_ticket(ticket_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can edit tickets."}), 403

    ticket = Ticket.query.get_or_404(ticket_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_ticket_payload(ticket, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(ticket_schema.dump(ticket))


@bp.post("/<int:ticket_id>/progress")
@jwt_required()
def add_progress(ticket_id: int):
    ticket = Ticket.query.get_or_404(ticket_id)
    if not is_admin() and ticket.employee_id != current_user_id():
        return jsonify({"msg": "Only the assigned employee can update progress."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        entry = _parse_progress_entry(ticket, payload)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    ticket.progress_entries.append(entry)
    db.session.commit()
    return jsonify(ticket_schema.dump(ticket)), 201


@bp.delete("/<int:ticket_id>")
@jwt_required()
def delete_ticket(ticket_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can delete tickets."}), 403

    ticket = Ticket.query.get_or_404(ticket_id)
    db.session.delete(ticket)
    db.session.commit()
    return jsonify({"msg": "Ticket deleted"})
