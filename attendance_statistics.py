"""Monthly attendance and payroll reconciliation.

Daily work reports, approved leaves and the weekend/holiday calendar are
merged into a per-employee, day-by-day grid.  Each cell records how much
leave it costs and how much extra working time it earns; the totals feed the
number of salary days to credit for the month.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from work_calendar import is_weekend_day

FULL_DAY_HOURS = Decimal("8")
HALF_DAY_HOURS = Decimal("4")
HALF = Decimal("0.5")
ONE = Decimal("1")
ZERO = Decimal("0")

DEFAULT_PAID_LEAVE_DAYS = 1
DEFAULT_MONTH_DAYS = 30

_WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Cell statuses
PRESENT = "present"
EXTRA_WORKING = "extra_working"
LEAVE = "leave"
HALF_DAY = "half_day"
ABSENT = "absent"
SHORT_DAY = "short_day"
OFF = "off"
NO_DATA = "none"

# Row kinds
WORKING_DAY = "working"
WEEKEND = "weekend"
HOLIDAY = "holiday"


class StatisticsInputError(ValueError):
    """Raised when the reconciliation inputs are inconsistent."""


@dataclass(frozen=True)
class MonthDay:
    date: date
    key: str
    display: str


@dataclass(frozen=True)
class EmployeeRef:
    id: int
    name: str


@dataclass(frozen=True)
class ReportEntry:
    employee_id: int
    date: date
    working_hours: str | None


@dataclass(frozen=True)
class LeaveSpan:
    employee_id: int
    start: date
    end: date
    is_half_day: bool = False

    def covers(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class DayCell:
    date: date
    value: str
    status: str
    leave: Decimal = ZERO
    extra: Decimal = ZERO


@dataclass
class EmployeeStatistics:
    employee_id: int
    name: str
    cells: list[DayCell] = field(default_factory=list)
    leave_taken: Decimal = ZERO
    extra_working_days: Decimal = ZERO
    paid_leave: Decimal = ZERO
    deduction: Decimal = ZERO
    salary_days: Decimal = ZERO


@dataclass
class MonthStatistics:
    year: int
    month: int
    days: list[MonthDay]
    day_kinds: dict[date, str]
    employees: list[EmployeeStatistics]


def month_days(year: int, month: int) -> list[MonthDay]:
    if month < 1 or month > 12:
        raise StatisticsInputError("Month must be between 1 and 12.")

    total = calendar.monthrange(year, month)[1]
    days: list[MonthDay] = []
    for day_number in range(1, total + 1):
        current = date(year, month, day_number)
        days.append(
            MonthDay(
                date=current,
                key=current.isoformat(),
                display=f"{_WEEKDAY_NAMES[current.weekday()]}, {day_number} {_MONTH_NAMES[month - 1]}",
            )
        )
    return days


def _parse_clock_minutes(value: str | None) -> int | None:
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if hours < 0 or hours > 23 or minutes < 0 or minutes > 59:
        return None
    return hours * 60 + minutes


def _format_minutes(total_minutes: int) -> str:
    hours, minutes = divmod(max(int(total_minutes), 0), 60)
    return f"{hours:02d}:{minutes:02d}"


def compute_report_hours(start_time: str, end_time: str, break_minutes: int = 0) -> tuple[str, str] | None:
    """Return ``(total, working)`` durations as ``HH:MM`` strings.

    ``None`` is returned when either time is malformed or the end time does
    not come after the start time.
    """

    start = _parse_clock_minutes(start_time)
    end = _parse_clock_minutes(end_time)
    if start is None or end is None or end <= start:
        return None

    total_minutes = end - start
    working_minutes = total_minutes - max(int(break_minutes or 0), 0)
    return _format_minutes(total_minutes), _format_minutes(working_minutes)


def parse_working_hours(value: str | None) -> Decimal | None:
    """Convert ``HH:MM`` or ``HH:MM:SS`` into fractional hours."""

    if not isinstance(value, str) or ":" not in value:
        return None
    parts = value.strip().split(":")
    try:
        hours = int(parts[0] or 0)
        minutes = int(parts[1] or 0)
    except (ValueError, IndexError):
        return None
    return Decimal(hours) + Decimal(minutes) / Decimal(60)


def display_working_hours(value: str | None) -> str:
    if not value:
        return ""
    parts = value.split(":")
    if len(parts) != 3:
        return value
    hour = parts[0][1:] if parts[0].startswith("0") else parts[0]
    return f"{hour}:{parts[1]}"


def working_day_credit(hours: Decimal | None) -> Decimal:
    if hours is None:
        return ZERO
    if hours >= FULL_DAY_HOURS:
        return ONE
    if hours >= HALF_DAY_HOURS:
        return HALF
    return ZERO


def index_reports(reports: Iterable[ReportEntry]) -> dict[tuple[date, int], str]:
    """Map ``(date, employee)`` to the reported hours; later reports win."""

    indexed: dict[tuple[date, int], str] = {}
    for report in reports:
        indexed[(report.date, report.employee_id)] = report.working_hours or ""
    return indexed


def _find_leave(leaves: Sequence[LeaveSpan], day: date) -> LeaveSpan | None:
    for leave in leaves:
        if leave.covers(day):
            return leave
    return None


def _classify_cell(
    *,
    day: date,
    value: str,
    special: bool,
    leave: LeaveSpan | None,
    today: date,
) -> DayCell:
    missing = value == ""
    hours = parse_working_hours(value) if not missing else None
    worked_on_special_day = not missing and special

    cell = DayCell(
        date=day,
        value=display_working_hours(value),
        status=PRESENT if not missing else (OFF if special else NO_DATA),
    )

    if worked_on_special_day and hours is not None:
        cell.status = EXTRA_WORKING
        cell.extra = ONE if hours >= FULL_DAY_HOURS else HALF

    credit = working_day_credit(hours if hours is not None else ZERO)

    if leave is not None:
        if missing and day >= today:
            if leave.is_half_day:
                cell.status, cell.leave = HALF_DAY, HALF
            else:
                cell.status, cell.leave = LEAVE, ONE
        elif missing:
            cell.status, cell.leave = LEAVE, ONE
        elif credit == HALF:
            cell.status, cell.leave = HALF_DAY, HALF
        elif credit == ZERO:
            cell.status, cell.leave = LEAVE, ONE
    elif missing and not special and day < today:
        cell.status, cell.leave = ABSENT, ONE
    elif not missing and not worked_on_special_day:
        if credit == HALF:
            cell.status, cell.leave = HALF_DAY, HALF
        elif credit == ZERO:
            cell.status, cell.leave = SHORT_DAY, ONE

    return cell


def reconcile_month(
    year: int,
    month: int,
    employees: Sequence[EmployeeRef],
    reports: Iterable[ReportEntry],
    leaves: Iterable[LeaveSpan],
    weekend_dates: Iterable[date],
    holiday_dates: Iterable[date],
    today: date,
    *,
    paid_leave: int | Decimal = DEFAULT_PAID_LEAVE_DAYS,
    month_days_paid: int | Decimal = DEFAULT_MONTH_DAYS,
) -> MonthStatistics:
    """Build the attendance grid and payroll totals for one month.

    ``weekend_dates`` are the Saturdays configured as weekend; Sundays are
    always weekend.  ``leaves`` must only contain approved leave.
    """

    days = month_days(year, month)
    weekends = set(weekend_dates)
    holidays = set(holiday_dates)
    report_index = index_reports(reports)

    leaves_by_employee: dict[int, list[LeaveSpan]] = {}
    for leave in leaves:
        if leave.end < leave.start:
            raise StatisticsInputError("Leave end date cannot be before its start date.")
        leaves_by_employee.setdefault(leave.employee_id, []).append(leave)

    day_kinds: dict[date, str] = {}
    for day in days:
        if day.date in holidays:
            day_kinds[day.date] = HOLIDAY
        elif is_weekend_day(day.date, weekends):
            day_kinds[day.date] = WEEKEND
        else:
            day_kinds[day.date] = WORKING_DAY

    paid = Decimal(paid_leave)
    base_days = Decimal(month_days_paid)

    results: list[EmployeeStatistics] = []
    for employee in employees:
        employee_leaves = leaves_by_employee.get(employee.id, [])
        stats = EmployeeStatistics(employee_id=employee.id, name=employee.name, paid_leave=paid)
        leave_total = ZERO
        extra_total = ZERO

        for day in days:
            cell = _classify_cell(
                day=day.date,
                value=report_index.get((day.date, employee.id), ""),
                special=day_kinds[day.date] != WORKING_DAY,
                leave=_find_leave(employee_leaves, day.date),
                today=today,
            )
            leave_total += cell.leave
            extra_total += cell.extra
            stats.cells.append(cell)

        stats.leave_taken = leave_total.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        stats.extra_working_days = extra_total
        stats.deduction = extra_total + paid - leave_total
        stats.salary_days = stats.deduction + base_days
        results.append(stats)

    return MonthStatistics(year=year, month=month, days=days, day_kinds=day_kinds, employees=results)
