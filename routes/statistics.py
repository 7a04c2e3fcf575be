import io
from calendar import monthrange
from datetime import date

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_jwt_extended import jwt_required
from openpyxl import Workbook

from attendance_statistics import (
    EmployeeRef,
    LeaveSpan,
    MonthStatistics,
    ReportEntry,
    StatisticsInputError,
    reconcile_month,
)
from models import DailyReport, Holiday, Leave, LeaveStatus, RoleEnum, User
from routes.common import is_admin
from routes.saturdays import load_weekend_saturdays
from schemas import EmployeeStatisticsSchema

bp = Blueprint("statistics", __name__, url_prefix="/api/statistics")
employee_statistics_schema = EmployeeStatisticsSchema(many=True)

SUMMARY_COLUMNS = ["Leave taken", "Extra working days", "Paid leave", "Deduction", "Salary days"]


def build_month_statistics(year: int, month: int, *, today: date | None = None) -> MonthStatistics:
    """Load a month's reports, leaves and calendar and reconcile them."""

    if month < 1 or month > 12:
        raise StatisticsInputError("Month must be between 1 and 12.")
    if year < 1 or year > 9999:
        raise StatisticsInputError("Year is out of range.")

    start = date(year, month, 1)
    end = date(year, month, monthrange(year, month)[1])

    users = (
        User.query.filter(User.active.is_(True), User.role == RoleEnum.employee)
        .order_by(User.first_name.asc(), User.last_name.asc(), User.id.asc())
        .all()
    )
    employees = [EmployeeRef(id=user.id, name=user.full_name) for user in users]
    employee_ids = [employee.id for employee in employees]

    reports = []
    leaves = []
    if employee_ids:
        reports = [
            ReportEntry(employee_id=report.employee_id, date=report.report_date, working_hours=report.working_hours)
            for report in DailyReport.query.filter(
                DailyReport.employee_id.in_(employee_ids),
                DailyReport.report_date >= start,
                DailyReport.report_date <= end,
            ).order_by(DailyReport.report_date.asc(), DailyReport.created_at.asc(), DailyReport.id.asc())
        ]
        leaves = [
            LeaveSpan(
                employee_id=leave.employee_id,
                start=leave.start_date,
                end=leave.end_date,
                is_half_day=bool(leave.is_half_day),
            )
            for leave in Leave.query.filter(
                Leave.employee_id.in_(employee_ids),
                Leave.status == LeaveStatus.APPROVED,
                Leave.start_date <= end,
                Leave.end_date >= start,
            )
        ]

    holidays = [
        holiday.date
        for holiday in Holiday.query.filter(Holiday.date >= start, Holiday.date <= end)
    ]

    return reconcile_month(
        year,
        month,
        employees,
        reports,
        leaves,
        load_weekend_saturdays(year, month),
        holidays,
        today or date.today(),
        paid_leave=current_app.config.get("PAYROLL_PAID_LEAVE_DAYS", 1),
        month_days_paid=current_app.config.get("PAYROLL_MONTH_DAYS", 30),
    )


def serialize_month_statistics(stats: MonthStatistics) -> dict:
    return {
        "year": stats.year,
        "month": stats.month,
        "days": [
            {
                "date": day.key,
                "key": day.key,
                "display": day.display,
                "kind": stats.day_kinds[day.date],
            }
            for day in stats.days
        ],
        "employees": employee_statistics_schema.dump(stats.employees),
    }


def _statistics_from_request():
    try:
        year = int(request.args["year"])
        month = int(request.args["month"])
    except (KeyError, ValueError):
        return None, (jsonify({"msg": "year and month query params are required"}), 400)

    try:
        return build_month_statistics(year, month), None
    except StatisticsInputError as exc:
        return None, (jsonify({"msg": str(exc)}), 400)


@bp.get("")
@jwt_required()
def month_statistics():
    if not is_admin():
        return jsonify({"msg": "Only administrators can view statistics."}), 403

    stats, error = _statistics_from_request()
    if error:
        return error

    return jsonify(serialize_month_statistics(stats))


def build_statistics_workbook(stats: MonthStatistics) -> Workbook:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = f"{stats.year}-{stats.month:02d}"

    sheet.append(["Employee"] + [day.display for day in stats.days] + SUMMARY_COLUMNS)
    for row in stats.employees:
        sheet.append(
            [row.name]
            + [cell.value or cell.status for cell in row.cells]
            + [
                float(row.leave_taken),
                float(row.extra_working_days),
                float(row.paid_leave),
                float(row.deduction),
                float(row.salary_days),
            ]
        )
    sheet.freeze_panes = "B2"
    return workbook


@bp.get("/export")
@jwt_required()
def export_month_statistics():
    if not is_admin():
        return jsonify({"msg": "Only administrators can view statistics."}), 403

    stats, error = _statistics_from_request()
    if error:
        return error

    output = io.BytesIO()
    build_statistics_workbook(stats).save(output)
    output.seek(0)

    return send_file(
        output,
        as_attachment=True,
        download_name=f"attendance_{stats.year}_{stats.month:02d}.xlsx",
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
