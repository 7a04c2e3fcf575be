from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import AlternateSaturday
from routes.common import is_admin, normalize_bool, parse_int
from routes.saturdays import load_weekend_saturdays
from schemas import AlternateSaturdaySchema
from work_calendar import (
    alternate_working_ordinals,
    normalize_working_ordinals,
    saturdays_in_month,
)

bp = Blueprint("alternate_saturdays", __name__, url_prefix="/api/alternate-saturdays")
alternate_schema = AlternateSaturdaySchema()
alternates_schema = AlternateSaturdaySchema(many=True)


def _validate_period(month: int, year: int) -> None:
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12.")
    if year < 1 or year > 9999:
        raise ValueError("Year is out of range.")


def _serialize_month(month: int, year: int, record: AlternateSaturday | None) -> dict:
    saturdays = saturdays_in_month(year, month)
    weekend_days = load_weekend_saturdays(year, month)
    if record is not None:
        data = alternate_schema.dump(record)
    else:
        data = {"_id": None, "month": month, "year": year, "workingSaturdays": None}
    data["saturdays"] = [day.isoformat() for day in saturdays]
    data["weekendDates"] = sorted(day.isoformat() for day in weekend_days)
    data["workingDates"] = [day.isoformat() for day in saturdays if day not in weekend_days]
    return data


@bp.get("")
@jwt_required()
def list_alternate_saturdays():
    query = AlternateSaturday.query
    year = parse_int(request.args.get("year"), min_value=1)
    if year:
        query = query.filter_by(year=year)
    records = query.order_by(AlternateSaturday.year.asc(), AlternateSaturday.month.asc()).all()
    return jsonify(alternates_schema.dump(records))


@bp.get("/<int:month>/<int:year>")
@jwt_required()
def get_alternate_saturday(month: int, year: int):
    try:
        _validate_period(month, year)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    record = AlternateSaturday.query.filter_by(year=year, month=month).one_or_none()
    return jsonify(_serialize_month(month, year, record))


@bp.put("/<int:month>/<int:year>")
@jwt_required()
def update_alternate_saturday(month: int, year: int):
    """Store the working Saturdays of a month.

    Accepts either ``{"ordinal": n, "checked": bool}`` to apply the odd/even
    toggle, or ``{"workingSaturdays": [...]}`` with explicit ordinals.
    """

    if not is_admin():
        return jsonify({"msg": "Only administrators can update Saturday settings."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        _validate_period(month, year)
        count = len(saturdays_in_month(year, month))
        if "workingSaturdays" in payload:
            values = payload.get("workingSaturdays")
            if not isinstance(values, list):
                raise ValueError("Working Saturdays must be a list.")
            working = normalize_working_ordinals(values, count)
        elif "ordinal" in payload:
            ordinal = parse_int(payload.get("ordinal"))
            if ordinal is None:
                raise ValueError("Saturday ordinal must be a whole number.")
            checked = normalize_bool(payload.get("checked", True), label="Checked")
            working = alternate_working_ordinals(count, ordinal, checked)
        else:
            raise ValueError("Provide either workingSaturdays or an ordinal to toggle.")
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    record = AlternateSaturday.query.filter_by(year=year, month=month).one_or_none()
    created = record is None
    if created:
        record = AlternateSaturday(year=year, month=month)
        db.session.add(record)
    record.working_saturdays = working
    record.updated_at = datetime.utcnow()

    try:
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to save alternate Saturdays for %s-%s", year, month, exc_info=exc)
        return jsonify({"msg": "Unable to save Saturday settings."}), 400

    return jsonify(_serialize_month(month, year, record)), 201 if created else 200


@bp.delete("/<int:month>/<int:year>")
@jwt_required()
def delete_alternate_saturday(month: int, year: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can update Saturday settings."}), 403

    record = AlternateSaturday.query.filter_by(year=year, month=month).first_or_404()
    db.session.delete(record)
    db.session.commit()
    return jsonify({"msg": "Alternate Saturday setting removed"})
