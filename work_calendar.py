"""Calendar helpers for Saturdays, birthdays, and holidays."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Collection, Iterable, Mapping

SATURDAY = 5
SUNDAY = 6

ODD_ORDINALS = (1, 3, 5)
EVEN_ORDINALS = (2, 4)

EVENT_COLOURS = {
    "holiday": "#EF4444",
    "birthday": "#3B82F6",
    "event": "#10B981",
}
_COLOUR_PRIORITY = {"holiday": 3, "birthday": 2, "event": 1}


@dataclass(frozen=True)
class CalendarEntry:
    id: str
    name: str
    date: date
    type: str
    colour: str
    extra: dict = field(default_factory=dict, compare=False)


def _first_weekday_on_or_after(day: date, weekday: int) -> date:
    return day + timedelta(days=(weekday - day.weekday()) % 7)


def saturdays_in_month(year: int, month: int) -> list[date]:
    first = _first_weekday_on_or_after(date(year, month, 1), SATURDAY)
    days_in_month = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(first.day, days_in_month + 1, 7)]


def saturdays_in_year(year: int) -> list[date]:
    return [day for month in range(1, 13) for day in saturdays_in_month(year, month)]


def alternate_saturdays_from(year: int, start: date) -> list[date]:
    """Return ``start`` and every second Saturday after it within ``year``."""

    saturdays = saturdays_in_year(year)
    try:
        index = saturdays.index(start)
    except ValueError:
        return []
    return saturdays[index::2]


def saturday_ordinal(day: date) -> int:
    """Return 1 for the first Saturday of the month, 2 for the second, ..."""

    return (day.day - 1) // 7 + 1


def alternate_working_ordinals(month_saturday_count: int, ordinal: int, checked: bool) -> list[int]:
    """Resolve the working Saturday ordinals after a 1st..5th toggle.

    Checking an odd Saturday keeps the odd set, checking an even one keeps the
    even set; unchecking flips to the other set.
    """

    if ordinal < 1 or ordinal > 5:
        raise ValueError("Saturday ordinal must be between 1 and 5.")

    is_odd = ordinal % 2 == 1
    if checked:
        selected = ODD_ORDINALS if is_odd else EVEN_ORDINALS
    else:
        selected = EVEN_ORDINALS if is_odd else ODD_ORDINALS
    return [value for value in selected if value <= month_saturday_count]


def normalize_working_ordinals(values: Iterable, month_saturday_count: int) -> list[int]:
    ordinals: set[int] = set()
    for value in values or []:
        if isinstance(value, bool):
            raise ValueError("Working Saturdays must be whole numbers.")
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("Working Saturdays must be whole numbers.") from exc
        if number < 1 or number > month_saturday_count:
            raise ValueError(
                f"Working Saturdays must be between 1 and {month_saturday_count} for this month."
            )
        ordinals.add(number)
    return sorted(ordinals)


def weekend_saturdays(
    year: int,
    month: int,
    weekend_flags: Mapping[date, bool] | None = None,
    working_ordinals: Iterable[int] | None = None,
) -> set[date]:
    """Saturdays of the month that are treated as weekend days.

    ``weekend_flags`` maps individual Saturdays to their stored weekend flag.
    ``working_ordinals`` is the alternate-Saturday record for the month, or
    ``None`` when the month has no record.
    """

    flags = weekend_flags or {}
    working = set(working_ordinals) if working_ordinals is not None else None

    weekends: set[date] = set()
    for saturday in saturdays_in_month(year, month):
        if flags.get(saturday):
            weekends.add(saturday)
            continue
        if working is not None and saturday_ordinal(saturday) not in working:
            weekends.add(saturday)
    return weekends


def is_weekend_day(day: date, weekend_dates: Collection[date]) -> bool:
    return day.weekday() == SUNDAY or day in weekend_dates


def birthday_date(dob: date, year: int) -> date:
    if dob.month == 2 and dob.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, dob.month, dob.day)


def build_calendar_events(events, users, holidays, year: int) -> list[CalendarEntry]:
    """Merge stored events, employee birthdays, and holidays for ``year``.

    ``events`` and ``holidays`` need ``id``, ``name`` and ``date``; ``users``
    need ``id``, ``first_name``, ``last_name`` and ``dob``.
    """

    entries: list[CalendarEntry] = []

    for event in events:
        entries.append(
            CalendarEntry(
                id=str(event.id),
                name=event.name,
                date=event.date,
                type="event",
                colour=EVENT_COLOURS["event"],
            )
        )

    for user in users:
        dob = getattr(user, "dob", None)
        if not dob:
            continue
        name = " ".join(part for part in (user.first_name, user.last_name) if part)
        entries.append(
            CalendarEntry(
                id=f"birthday-{user.id}-{year}",
                name=f"{name}'s Birthday",
                date=birthday_date(dob, year),
                type="birthday",
                colour=EVENT_COLOURS["birthday"],
                extra={"userId": user.id},
            )
        )

    for holiday in holidays:
        entries.append(
            CalendarEntry(
                id=str(holiday.id),
                name=holiday.name,
                date=holiday.date,
                type="holiday",
                colour=EVENT_COLOURS["holiday"],
            )
        )

    entries.sort(key=lambda entry: (entry.date, -_COLOUR_PRIORITY[entry.type], entry.name))
    return entries


def day_colours(entries: Iterable[CalendarEntry]) -> dict[str, str]:
    """Pick one colour per day: holiday beats birthday beats event."""

    chosen: dict[str, str] = {}
    for entry in entries:
        key = entry.date.isoformat()
        current = chosen.get(key)
        if current is None or _COLOUR_PRIORITY[entry.type] > _COLOUR_PRIORITY[current]:
            chosen[key] = entry.type
    return {key: EVENT_COLOURS[kind] for key, kind in chosen.items()}
