from datetime import date, datetime

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import AlternateSaturday, SaturdaySetting
from routes.common import is_admin, normalize_bool, parse_int, parse_iso_date
from schemas import SaturdaySettingSchema
from work_calendar import SATURDAY, alternate_saturdays_from, saturdays_in_month, saturdays_in_year, weekend_saturdays

bp = Blueprint("saturdays", __name__, url_prefix="/api/saturdays")
saturday_schema = SaturdaySettingSchema()
saturdays_schema = SaturdaySettingSchema(many=True)


def load_weekend_saturdays(year: int, month: int) -> set[date]:
    """Resolve the weekend Saturdays of a month from both Saturday stores."""

    saturdays = saturdays_in_month(year, month)
    settings = SaturdaySetting.query.filter(SaturdaySetting.date.in_(saturdays)).all()
    flags = {setting.date: bool(setting.is_weekend) for setting in settings}

    record = AlternateSaturday.query.filter_by(year=year, month=month).one_or_none()
    working = record.working_saturdays if record is not None else None
    return weekend_saturdays(year, month, flags, working)


def _upsert_setting(day: date, is_weekend: bool) -> SaturdaySetting:
    setting = SaturdaySetting.query.filter_by(date=day).one_or_none()
    if setting is None:
        setting = SaturdaySetting(date=day, year=day.year, month=day.month)
    setting.is_weekend = is_weekend
    setting.updated_at = datetime.utcnow()
    db.session.add(setting)
    return setting


def _parse_bulk_payload(groups) -> list[tuple[date, bool]]:
    if not isinstance(groups, list):
        raise ValueError("Saturdays must be provided as a list.")

    parsed: dict[date, bool] = {}
    for group in groups:
        if not isinstance(group, dict):
            raise ValueError("Each Saturday group must be an object.")
        dates = group.get("dates")
        if not isinstance(dates, list):
            raise ValueError("Each Saturday group needs a list of dates.")
        for item in dates:
            if not isinstance(item, dict):
                raise ValueError("Each Saturday entry must be an object.")
            day = parse_iso_date(item.get("date"))
            if day.weekday() != SATURDAY:
                raise ValueError(f"{day.isoformat()} is not a Saturday.")
            parsed[day] = normalize_bool(item.get("isWeekend", False), label="isWeekend")

    if not parsed:
        raise ValueError("Please select at least one Saturday.")
    return sorted(parsed.items())


@bp.get("")
@jwt_required()
def list_saturdays():
    year = parse_int(request.args.get("year"), min_value=1) or date.today().year
    settings = (
        SaturdaySetting.query.filter_by(year=year)
        .order_by(SaturdaySetting.date.asc())
        .all()
    )
    return jsonify(saturdays_schema.dump(settings))


@bp.post("/bulk-update")
@jwt_required()
def bulk_update_saturdays():
    if not is_admin():
        return jsonify({"msg": "Only administrators can update Saturday settings."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        entries = _parse_bulk_payload(payload.get("saturdays"))
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    settings = [_upsert_setting(day, is_weekend) for day, is_weekend in entries]

    try:
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to save Saturday settings", exc_info=exc)
        return jsonify({"msg": "Unable to save Saturday settings."}), 400

    return jsonify(
        {
            "msg": "Saturdays updated successfully.",
            "updated": len(settings),
            "saturdays": saturdays_schema.dump(settings),
        }
    )


@bp.post("/alternate")
@jwt_required()
def apply_alternate_pattern():
    """Mark every second Saturday from ``start`` as weekend for the rest of the year."""

    if not is_admin():
        return jsonify({"msg": "Only administrators can update Saturday settings."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        start = parse_iso_date(payload.get("start"), label="Start")
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    if start.weekday() != SATURDAY:
        return jsonify({"msg": f"{start.isoformat()} is not a Saturday."}), 400

    today = date.today()
    weekend_days = set(alternate_saturdays_from(start.year, start))
    touched: list[SaturdaySetting] = []
    for saturday in saturdays_in_year(start.year):
        if saturday >= start:
            touched.append(_upsert_setting(saturday, saturday in weekend_days))
        elif saturday > today:
            touched.append(_upsert_setting(saturday, False))

    try:
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to apply alternate Saturday pattern", exc_info=exc)
        return jsonify({"msg": "Unable to save Saturday settings."}), 400

    return jsonify(
        {
            "msg": "Saturdays updated successfully.",
            "updated": len(touched),
            "weekendDates": sorted(day.isoformat() for day in weekend_days),
        }
    )
