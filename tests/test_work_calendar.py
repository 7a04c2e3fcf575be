from datetime import date
from types import SimpleNamespace

import pytest

from work_calendar import (
    EVENT_COLOURS,
    alternate_saturdays_from,
    alternate_working_ordinals,
    birthday_date,
    build_calendar_events,
    day_colours,
    is_weekend_day,
    normalize_working_ordinals,
    saturday_ordinal,
    saturdays_in_month,
    saturdays_in_year,
    weekend_saturdays,
)


def test_saturdays_in_month_handles_month_starting_on_saturday():
    assert saturdays_in_month(2024, 6) == [
        date(2024, 6, 1),
        date(2024, 6, 8),
        date(2024, 6, 15),
        date(2024, 6, 22),
        date(2024, 6, 29),
    ]
    assert len(saturdays_in_month(2025, 2)) == 4


def test_saturdays_in_year_covers_whole_year():
    saturdays = saturdays_in_year(2024)
    assert saturdays[0] == date(2024, 1, 6)
    assert saturdays[-1] == date(2024, 12, 28)
    assert len(saturdays) == 52
    assert all(day.weekday() == 5 for day in saturdays)


def test_saturdays_in_last_supported_year():
    saturdays = saturdays_in_year(9999)
    assert saturdays[-1].year == 9999
    assert saturdays[-1].month == 12
    assert saturdays[-1].day > 24
    assert alternate_saturdays_from(9999, saturdays[-1]) == [saturdays[-1]]


def test_alternate_saturdays_from_start_skips_every_other_week():
    result = alternate_saturdays_from(2024, date(2024, 1, 6))
    assert result[:3] == [date(2024, 1, 6), date(2024, 1, 20), date(2024, 2, 3)]
    assert len(result) == 26


def test_alternate_saturdays_from_non_saturday_is_empty():
    assert alternate_saturdays_from(2024, date(2024, 1, 8)) == []


def test_saturday_ordinal():
    assert saturday_ordinal(date(2024, 3, 2)) == 1
    assert saturday_ordinal(date(2024, 3, 9)) == 2
    assert saturday_ordinal(date(2024, 3, 30)) == 5


@pytest.mark.parametrize(
    "count, ordinal, checked, expected",
    [
        (5, 1, True, [1, 3, 5]),
        (4, 3, True, [1, 3]),
        (5, 2, True, [2, 4]),
        (5, 1, False, [2, 4]),
        (4, 2, False, [1, 3]),
    ],
)
def test_alternate_working_ordinals_odd_even_rule(count, ordinal, checked, expected):
    assert alternate_working_ordinals(count, ordinal, checked) == expected


def test_alternate_working_ordinals_rejects_out_of_range():
    with pytest.raises(ValueError):
        alternate_working_ordinals(5, 6, True)


def test_normalize_working_ordinals_sorts_and_deduplicates():
    assert normalize_working_ordinals([3, "1", 3], 5) == [1, 3]


@pytest.mark.parametrize("values", [[5], [0], [True], ["x"]])
def test_normalize_working_ordinals_rejects_bad_values(values):
    with pytest.raises(ValueError):
        normalize_working_ordinals(values, 4)


def test_weekend_saturdays_from_flags_only():
    flags = {date(2024, 3, 2): True, date(2024, 3, 9): False}
    assert weekend_saturdays(2024, 3, flags, None) == {date(2024, 3, 2)}


def test_weekend_saturdays_from_working_ordinals():
    assert weekend_saturdays(2024, 3, {}, [1, 3, 5]) == {date(2024, 3, 9), date(2024, 3, 23)}


def test_weekend_saturdays_union_of_both_sources():
    flags = {date(2024, 3, 2): True}
    assert weekend_saturdays(2024, 3, flags, [1, 3, 5]) == {
        date(2024, 3, 2),
        date(2024, 3, 9),
        date(2024, 3, 23),
    }


def test_is_weekend_day():
    assert is_weekend_day(date(2024, 3, 3), [])
    assert not is_weekend_day(date(2024, 3, 2), [])
    assert is_weekend_day(date(2024, 3, 2), [date(2024, 3, 2)])


def test_leap_day_birthday_moves_to_feb_28():
    assert birthday_date(date(1992, 2, 29), 2023) == date(2023, 2, 28)
    assert birthday_date(date(1992, 2, 29), 2024) == date(2024, 2, 29)


def test_build_calendar_events_merges_sources_in_date_order():
    events = [SimpleNamespace(id=1, name="Offsite", date=date(2024, 5, 10))]
    holidays = [SimpleNamespace(id=2, name="Labour Day", date=date(2024, 5, 1))]
    users = [
        SimpleNamespace(id=7, first_name="Eve", last_name="Worker", dob=date(1990, 5, 10)),
        SimpleNamespace(id=8, first_name="No", last_name="Dob", dob=None),
    ]

    entries = build_calendar_events(events, users, holidays, 2024)

    assert [entry.id for entry in entries] == ["2", "birthday-7-2024", "1"]
    birthday = entries[1]
    assert birthday.name == "Eve Worker's Birthday"
    assert birthday.type == "birthday"
    assert birthday.extra == {"userId": 7}

    assert day_colours(entries) == {
        "2024-05-01": EVENT_COLOURS["holiday"],
        "2024-05-10": EVENT_COLOURS["birthday"],
    }
