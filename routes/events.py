from datetime import date

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import Event, Holiday, User
from routes.common import current_user_id, extract_string, is_admin, parse_int, parse_iso_date
from schemas import EventSchema
from work_calendar import build_calendar_events, day_colours

bp = Blueprint("events", __name__, url_prefix="/api/events")
event_schema = EventSchema()
events_schema = EventSchema(many=True)


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


@bp.get("")
@jwt_required()
def list_events():
    query = Event.query
    year = parse_int(request.args.get("year"), min_value=1)
    if year:
        start, end = _year_bounds(year)
        query = query.filter(Event.date >= start, Event.date <= end)
    return jsonify(events_schema.dump(query.order_by(Event.date.asc(), Event.id.asc()).all()))


@bp.get("/calendar")
@jwt_required()
def calendar_view():
    """Events, birthdays and holidays for one year, with a colour per day."""

    year = parse_int(request.args.get("year"), min_value=1) or date.today().year
    if year > 9999:
        return jsonify({"msg": "Year is out of range."}), 400
    start, end = _year_bounds(year)

    events = Event.query.filter(Event.date >= start, Event.date <= end).all()
    holidays = Holiday.query.filter(Holiday.date >= start, Holiday.date <= end).all()
    users = User.query.filter(User.active.is_(True), User.dob.isnot(None)).all()

    entries = build_calendar_events(events, users, holidays, year)
    return jsonify(
        {
            "year": year,
            "events": [
                {
                    "_id": entry.id,
                    "name": entry.name,
                    "date": entry.date.isoformat(),
                    "type": entry.type,
                    "color": entry.colour,
                    **entry.extra,
                }
                for entry in entries
            ],
            "dayColors": day_colours(entries),
        }
    )


@bp.post("")
@jwt_required()
def create_event():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage events."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        name = extract_string(payload.get("name"), label="Name", required=True, max_length=200)
        day = parse_iso_date(payload.get("date"))
        description = extract_string(payload.get("description"), label="Description")
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    event = Event(name=name, date=day, description=description, created_by_id=current_user_id())
    db.session.add(event)
    db.session.commit()
    return jsonify(event_schema.dump(event)), 201


@bp.put("/<int:event_id>")
@jwt_required()
def update_event(event_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage events."}), 403

    event = Event.query.get_or_404(event_id)
    payload = request.get_json(silent=True) or {}
    try:
        if "name" in payload:
            event.name = extract_string(payload.get("name"), label="Name", required=True, max_length=200)
        if "date" in payload:
            event.date = parse_iso_date(payload.get("date"))
        if "description" in payload:
            event.description = extract_string(payload.get("description"), label="Description")
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(event_schema.dump(event))


@bp.delete("/<int:event_id>")
@jwt_required()
def delete_event(event_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage events."}), 403

    event = Event.query.get_or_404(event_id)
    db.session.delete(event)
    db.session.commit()
    return jsonify({"msg": "Event deleted"})
