from datetime import datetime, timedelta, timezone

import pytest

from app.domain.rentals import occurrence
from app.domain.rentals.occurrence import (
    align_date_to_day,
    parse_local_datetime,
    resolve_next_occurrence,
    to_local_reference,
    weekday_label,
)
from app.domain.rentals.records import TimeSlot
from tests.conftest import REFERENCE, one_off_slot, weekly_slot


class TestParseLocalDatetime:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-02T18:00:00", datetime(2024, 1, 2, 18, 0)),
            ("2024-01-02T18:00:00Z", datetime(2024, 1, 2, 18, 0)),
            ("2024-01-02T18:00:00.000+05:00", datetime(2024, 1, 2, 18, 0)),
            ("2024-01-02T18:30", datetime(2024, 1, 2, 18, 30)),
            ("2024-01-02", datetime(2024, 1, 2, 0, 0)),
            ("2024-01-02 07:15:00", datetime(2024, 1, 2, 7, 15)),
        ],
    )
    def test_drops_offsets_and_fractions(self, value, expected):
        assert parse_local_datetime(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", "2024-13-45T99:00:00", 1234])
    def test_unparsable_values_are_none(self, value):
        assert parse_local_datetime(value) is None

    def test_aware_datetime_keeps_wall_clock(self):
        aware = datetime(2024, 1, 2, 18, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_local_datetime(aware) == datetime(2024, 1, 2, 18, 0)


class TestHelpers:
    def test_weekday_label(self):
        assert weekday_label(0) == "Mon"
        assert weekday_label(6) == "Sun"
        assert weekday_label(9) == "Wed"

    def test_align_date_to_day_same_day(self):
        monday = datetime(2024, 1, 1, 15, 45)
        assert align_date_to_day(monday, 0) == datetime(2024, 1, 1)

    def test_align_date_to_day_wraps_week(self):
        wednesday = datetime(2024, 1, 3, 9)
        assert align_date_to_day(wednesday, 1) == datetime(2024, 1, 9)

    def test_naive_reference_is_untouched(self):
        naive = datetime(2024, 1, 1, 12)
        assert to_local_reference(naive) == naive


class TestOneOffSlots:
    def test_future_start_is_returned(self):
        assert resolve_next_occurrence(one_off_slot(), REFERENCE) == datetime(2024, 1, 2, 18, 0)

    def test_past_start_is_none(self):
        slot = one_off_slot(start=datetime(2023, 12, 15, 10, 0))
        assert resolve_next_occurrence(slot, REFERENCE) is None

    def test_start_minutes_override_clock_time(self):
        slot = one_off_slot(start=datetime(2024, 1, 5), minutes=600)
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 5, 10, 0)

    def test_start_equal_to_reference_counts(self):
        slot = one_off_slot(start=datetime(2024, 1, 1, 12, 0))
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 1, 12, 0)

    def test_missing_start_is_none(self):
        slot = TimeSlot(id="broken", repeating=False, start_date=None)
        assert resolve_next_occurrence(slot, REFERENCE) is None

    def test_string_start_is_parsed(self):
        slot = TimeSlot(id="raw", repeating=False, start_date="2024-01-02T18:00:00Z")
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 2, 18, 0)

    def test_minutes_beyond_calendar_is_none(self):
        slot = one_off_slot(start=datetime(2024, 1, 2), minutes=10**15)
        assert resolve_next_occurrence(slot, REFERENCE) is None


class TestWeeklySlots:
    def test_next_matching_weekday(self):
        assert resolve_next_occurrence(weekly_slot(), REFERENCE) == datetime(2024, 1, 3, 18, 0)

    def test_series_ended_before_reference(self):
        slot = weekly_slot(end=datetime(2023, 12, 31))
        assert resolve_next_occurrence(slot, REFERENCE) is None

    def test_occurrence_on_end_date_is_kept(self):
        slot = weekly_slot(end=datetime(2024, 1, 3, 18, 0))
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 3, 18, 0)

    def test_occurrence_after_end_date_is_dropped(self):
        slot = weekly_slot(end=datetime(2024, 1, 2, 23, 59))
        assert resolve_next_occurrence(slot, REFERENCE) is None

    def test_same_day_later_today(self):
        slot = weekly_slot(day_of_week=0, minutes=13 * 60)
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 1, 13, 0)

    def test_same_day_already_passed_moves_a_week(self):
        slot = weekly_slot(day_of_week=0, minutes=10 * 60)
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 8, 10, 0)

    def test_passed_today_but_series_ends_this_week(self):
        slot = weekly_slot(day_of_week=0, minutes=10 * 60, end=datetime(2024, 1, 5))
        assert resolve_next_occurrence(slot, REFERENCE) is None

    def test_series_starting_in_future_waits_for_first_day(self):
        # 2024-02-01 is a Thursday; the first Monday on or after it is 2024-02-05
        slot = weekly_slot(day_of_week=0, minutes=9 * 60, start=datetime(2024, 2, 1))
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 2, 5, 9, 0)

    def test_missing_day_uses_start_weekday_and_time(self):
        slot = TimeSlot(id="wed", repeating=True, start_date=datetime(2023, 12, 20, 18, 30))
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 3, 18, 30)

    def test_out_of_range_day_is_normalized(self):
        slot = weekly_slot(day_of_week=9)
        assert resolve_next_occurrence(slot, REFERENCE) == datetime(2024, 1, 3, 18, 0)

    def test_series_at_end_of_calendar_is_none(self):
        # 9999-12-31 is a Friday; the next Monday does not exist
        slot = weekly_slot(day_of_week=0, start=datetime(9999, 12, 31, 10, 0))
        assert resolve_next_occurrence(slot, REFERENCE) is None

    @pytest.mark.parametrize("minutes", [10**10, 10**15])
    def test_minutes_beyond_calendar_is_none(self, minutes):
        assert resolve_next_occurrence(weekly_slot(minutes=minutes), REFERENCE) is None

    @pytest.mark.parametrize("day", range(7))
    @pytest.mark.parametrize("minutes", [0, 11 * 60 + 59, 12 * 60, 17 * 60 + 30, 23 * 60 + 45])
    def test_result_lands_on_slot_day_and_time(self, day, minutes):
        result = resolve_next_occurrence(weekly_slot(day_of_week=day, minutes=minutes), REFERENCE)
        naive_reference = REFERENCE.replace(tzinfo=None)

        assert result is not None
        assert result.weekday() == day
        assert result.hour * 60 + result.minute == minutes
        assert naive_reference <= result < naive_reference + timedelta(days=7)

    def test_resolution_is_stable(self):
        slot = weekly_slot(day_of_week=4, minutes=19 * 60)
        assert resolve_next_occurrence(slot, REFERENCE) == resolve_next_occurrence(slot, REFERENCE)


class TestReferenceTimezone:
    def test_aware_reference_converted_to_discover_zone(self, monkeypatch):
        monkeypatch.setattr(occurrence, "DISCOVER_TIMEZONE", "America/New_York")
        # 02:00 UTC on Jan 2 is 21:00 on Jan 1 in New York
        reference = datetime(2024, 1, 2, 2, 0, tzinfo=timezone.utc)
        slot = one_off_slot(start=datetime(2024, 1, 1, 22, 0))

        assert to_local_reference(reference) == datetime(2024, 1, 1, 21, 0)
        assert resolve_next_occurrence(slot, reference) == datetime(2024, 1, 1, 22, 0)

    def test_unknown_zone_falls_back_to_utc(self, monkeypatch):
        monkeypatch.setattr(occurrence, "DISCOVER_TIMEZONE", "Not/AZone")
        assert to_local_reference(REFERENCE) == datetime(2024, 1, 1, 12, 0)
