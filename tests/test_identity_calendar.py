"""Identity map and calendar test suite."""

from __future__ import annotations

from datetime import date

from jornadas.calendar.service import HolidaySet, classify_day, expected_jornada_hours
from jornadas.common.constants import DayType, PunchType
from jornadas.identity.service import IdentityMap
from tests.conftest import _make_holiday, _make_link, _make_punch, local


class TestIdentityMap:

    def test_many_identifiers_per_employee(self):
        identity = IdentityMap.from_links(
            [_make_link(1, "CARD-1"), _make_link(1, "FINGER-1"), _make_link(2, "CARD-2")]
        )

        assert identity.employee_for("FINGER-1") == 1
        assert identity.identifiers_for(1) == frozenset({"CARD-1", "FINGER-1"})
        assert identity.employee_ids == [1, 2]
        assert identity.conflicts == []

    def test_shared_identifier_is_a_conflict(self):
        identity = IdentityMap.from_links(
            [_make_link(1, "CARD-1"), _make_link(2, "CARD-1"), _make_link(2, "CARD-2")]
        )

        assert identity.employee_for("CARD-1") is None
        assert len(identity.conflicts) == 1
        assert identity.conflicts[0].identifier_id == "CARD-1"
        assert identity.conflicts[0].employee_ids == (1, 2)
        assert identity.employee_for("CARD-2") == 2

    def test_group_punches_counts_unresolved(self):
        identity = IdentityMap.from_links([_make_link(1, "CARD-1")])
        punches = [
            _make_punch(local(2025, 12, 1, 8), identifier_id="CARD-1"),
            _make_punch(local(2025, 12, 1, 16), PunchType.exit, identifier_id="CARD-1"),
            _make_punch(local(2025, 12, 1, 9), identifier_id="UNKNOWN"),
        ]
        grouped, unresolved = identity.group_punches(punches)

        assert list(grouped) == [1]
        assert len(grouped[1]) == 2
        assert unresolved == 1


class TestCalendar:

    def test_classify_day(self):
        assert classify_day(date(2025, 12, 1), False) == DayType.weekday
        assert classify_day(date(2025, 12, 6), False) == DayType.saturday
        assert classify_day(date(2025, 12, 7), False) == DayType.sunday
        assert classify_day(date(2025, 12, 7), True) == DayType.holiday

    def test_workable_holiday_is_ordinary(self):
        holidays = HolidaySet(
            [
                _make_holiday(date(2025, 12, 8), name="Inmaculada Concepción"),
                _make_holiday(date(2025, 12, 24), is_workable=True),
            ]
        )

        assert date(2025, 12, 8) in holidays
        assert date(2025, 12, 24) not in holidays
        assert holidays.context(date(2025, 12, 24)).day_type == DayType.weekday
        assert holidays.context(date(2025, 12, 8)).day_type == DayType.holiday
        assert holidays.get(date(2025, 12, 24)).is_workable is True

    def test_context_fields(self):
        context = HolidaySet().context(date(2025, 12, 6))
        assert context.weekday == 5
        assert context.is_holiday is False
        assert context.day_type == DayType.saturday

    def test_expected_jornada(self, test_settings):
        assert expected_jornada_hours(DayType.weekday, test_settings) == 8.0
        assert expected_jornada_hours(DayType.saturday, test_settings) == 7.0
