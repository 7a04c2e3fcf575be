from datetime import date

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Holiday
from routes.common import extract_string, is_admin, parse_int, parse_iso_date
from schemas import HolidaySchema

bp = Blueprint("holidays", __name__, url_prefix="/api/holidays")
holiday_schema = HolidaySchema()
holidays_schema = HolidaySchema(many=True)


def _date_taken(day: date, *, exclude_id: int | None = None) -> bool:
    query = Holiday.query.filter(Holiday.date == day)
    if exclude_id is not None:
        query = query.filter(Holiday.id != exclude_id)
    return query.first() is not None


@bp.get("")
@jwt_required()
def list_holidays():
    query = Holiday.query
    year = parse_int(request.args.get("year"), min_value=1)
    if year:
        query = query.filter(Holiday.date >= date(year, 1, 1), Holiday.date <= date(year, 12, 31))
    return jsonify(holidays_schema.dump(query.order_by(Holiday.date.asc()).all()))


@bp.post("")
@jwt_required()
def create_holiday():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage holidays."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        name = extract_string(payload.get("name"), label="Name", required=True, max_length=120)
        day = parse_iso_date(payload.get("date"))
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    if _date_taken(day):
        return jsonify({"msg": "A holiday already exists on this date."}), 400

    holiday = Holiday(name=name, date=day)
    db.session.add(holiday)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"msg": "A holiday already exists on this date."}), 400
    return jsonify(holiday_schema.dump(holiday)), 201


@bp.put("/<int:holiday_id>")
@jwt_required()
def update_holiday(holiday_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage holidays."}), 403

    holiday = Holiday.query.get_or_404(holiday_id)
    payload = request.get_json(silent=True) or {}
    try:
        if "name" in payload:
            holiday.name = extract_string(payload.get("name"), label="Name", required=True, max_length=120)
        if "date" in payload:
            day = parse_iso_date(payload.get("date"))
            if _date_taken(day, exclude_id=holiday.id):
                db.session.rollback()
                return jsonify({"msg": "A holiday already exists on this date."}), 400
            holiday.date = day
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(holiday_schema.dump(holiday))


@bp.delete("/<int:holiday_id>")
@jwt_required()
def delete_holiday(holiday_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage holidays."}), 403

    holiday = Holiday.query.get_or_404(holiday_id)
    db.session.delete(holiday)
    db.session.commit()
    return jsonify({"msg": "Holiday deleted"})
