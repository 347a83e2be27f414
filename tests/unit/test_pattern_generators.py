"""Unit tests for recurrence candidate generators."""

from datetime import datetime, timedelta, timezone
from itertools import islice

import pytest

from occurrence_engine.calendar.occurrence_models import Recurrence, RecurrenceType
from occurrence_engine.calendar.pattern_generators import (
    DailyGenerator,
    MonthlyGenerator,
    WeeklyGenerator,
    create_generator,
)

pytestmark = pytest.mark.unit

UTC = timezone.utc


def _take(generator, n):
    return list(islice(generator, n))


class TestCreateGenerator:
    """Tests for generator dispatch by recurrence type."""

    @pytest.mark.parametrize(
        ("rule_type", "expected"),
        [
            (RecurrenceType.DAILY, DailyGenerator),
            (RecurrenceType.WEEKLY, WeeklyGenerator),
            (RecurrenceType.MONTHLY, MonthlyGenerator),
        ],
    )
    def test_create_generator_when_known_type_then_matching_class(self, rule_type, expected):
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        generator = create_generator(Recurrence(type=rule_type), anchor)
        assert isinstance(generator, expected)

    def test_create_generator_when_unknown_type_then_none(self):
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        assert create_generator(Recurrence(type=99), anchor) is None


class TestDailyGenerator:
    """Tests for DailyGenerator."""

    def test_daily_when_unbounded_then_steps_by_interval(self):
        anchor = datetime(2024, 6, 1, 14, 30, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1, repeat_interval=3), None, 7300)
        assert _take(generator, 3) == [
            datetime(2024, 6, 1, 14, 30, tzinfo=UTC),
            datetime(2024, 6, 4, 14, 30, tzinfo=UTC),
            datetime(2024, 6, 7, 14, 30, tzinfo=UTC),
        ]

    def test_daily_when_end_date_then_end_is_exclusive(self):
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        end = datetime(2024, 6, 4, 10, 0, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1), end, 7300)
        result = list(generator)
        assert [dt.day for dt in result] == [1, 2, 3]
        assert generator.truncated is False

    def test_daily_when_cap_reached_then_truncated(self):
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1), None, 5)
        assert len(list(generator)) == 5
        assert generator.truncated is True

    def test_daily_when_iterated_twice_then_restarts(self):
        """Each iteration starts again from the anchor and resets truncation."""
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1), None, 3)
        first = list(generator)
        assert generator.truncated is True
        assert _take(generator, 2) == first[:2]
        assert generator.truncated is False


class TestWeeklyGenerator:
    """Tests for WeeklyGenerator."""

    def test_weekly_when_no_days_then_anchor_weekday(self):
        anchor = datetime(2024, 6, 3, 10, 0, tzinfo=UTC)  # Monday
        generator = WeeklyGenerator(anchor, Recurrence(type=2), None, 1000)
        assert [dt.day for dt in _take(generator, 3)] == [3, 10, 17]

    def test_weekly_when_first_selected_day_after_anchor_then_starts_there(self):
        """Anchor on Friday with Monday selected begins the following Monday."""
        anchor = datetime(2026, 1, 2, 15, 4, 5, tzinfo=UTC)
        generator = WeeklyGenerator(anchor, Recurrence(type=2, weekly_days="2"), None, 1000)
        assert generator.first_occurrence() == datetime(2026, 1, 5, 15, 4, 5, tzinfo=UTC)

    def test_weekly_when_end_date_mid_week_then_skips_later_days(self):
        anchor = datetime(2024, 6, 3, 10, 0, tzinfo=UTC)
        end = datetime(2024, 6, 17, 10, 0, tzinfo=UTC)
        generator = WeeklyGenerator(anchor, Recurrence(type=2), end, 1000)
        assert [dt.day for dt in generator] == [3, 10]

    def test_weekly_when_cap_reached_then_truncated_after_last_full_week(self):
        anchor = datetime(2024, 6, 3, 10, 0, tzinfo=UTC)
        generator = WeeklyGenerator(anchor, Recurrence(type=2), None, 2)
        assert [dt.day for dt in generator] == [3, 10, 17]
        assert generator.truncated is True


class TestMonthlyGenerator:
    """Tests for MonthlyGenerator."""

    def test_monthly_when_anchor_past_end_then_empty(self):
        anchor = datetime(2024, 6, 15, 10, 0, tzinfo=UTC)
        end = datetime(2024, 6, 1, tzinfo=UTC)
        generator = MonthlyGenerator(anchor, Recurrence(type=3), end, 500)
        assert list(generator) == []

    def test_monthly_when_no_day_selectors_then_anchor_day_clamped(self):
        anchor = datetime(2024, 1, 31, 9, 0, tzinfo=UTC)
        generator = MonthlyGenerator(anchor, Recurrence(type=3), None, 500)
        assert [dt.date().isoformat() for dt in _take(generator, 3)] == [
            "2024-01-31",
            "2024-02-29",
            "2024-03-31",
        ]

    def test_monthly_when_monthly_day_set_then_takes_precedence(self):
        """A fixed day of month wins over the week/weekday pair."""
        anchor = datetime(2024, 6, 11, 9, 0, tzinfo=UTC)
        rule = Recurrence(type=3, monthly_day=20, monthly_week=2, monthly_week_day=3)
        generator = MonthlyGenerator(anchor, rule, None, 500)
        assert generator.occurrence_for_month(0).day == 20

    def test_monthly_when_week_day_out_of_range_then_anchor_day(self):
        anchor = datetime(2024, 6, 11, 9, 0, tzinfo=UTC)
        rule = Recurrence(type=3, monthly_week=2, monthly_week_day=9)
        generator = MonthlyGenerator(anchor, rule, None, 500)
        assert generator.occurrence_for_month(1) == datetime(2024, 7, 11, 9, 0, tzinfo=UTC)

    def test_monthly_when_cap_reached_then_truncated(self):
        anchor = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        generator = MonthlyGenerator(anchor, Recurrence(type=3), None, 3)
        assert [dt.month for dt in generator] == [1, 2, 3, 4]
        assert generator.truncated is True


class TestDateRange:
    """Tests for cursors leaving the supported datetime range."""

    def test_daily_when_backwards_interval_overflows_then_stops(self):
        anchor = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1, repeat_interval=-1_000_000), None, 10)
        assert list(generator) == [anchor]
        assert generator.truncated is True

    def test_weekly_when_interval_overflows_then_stops(self):
        anchor = datetime(2024, 6, 3, 10, 0, tzinfo=UTC)
        generator = WeeklyGenerator(anchor, Recurrence(type=2, repeat_interval=10000), None, 1000)
        result = list(generator)
        assert result[0] == anchor
        assert result[-1].year < 9999
        assert generator.truncated is True

    def test_monthly_when_interval_overflows_then_stops(self):
        anchor = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        generator = MonthlyGenerator(anchor, Recurrence(type=3, repeat_interval=2400), None, 500)
        assert [dt.year for dt in generator] == list(range(2024, 9825, 200))
        assert generator.truncated is True


class TestSkipBefore:
    """Tests for starting generation near a later instant."""

    def test_daily_when_skip_before_then_starts_one_step_early(self):
        anchor = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        skip = datetime(2024, 6, 1, tzinfo=UTC)
        generator = DailyGenerator(anchor, Recurrence(type=1), None, 3, skip_before=skip)

        assert [dt.date().isoformat() for dt in generator] == [
            "2024-05-30",
            "2024-05-31",
            "2024-06-01",
        ]
        assert generator.truncated is True

    def test_weekly_when_skip_before_then_first_week_precedes_it(self):
        anchor = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)  # Monday
        skip = datetime(2024, 6, 1, tzinfo=UTC)
        generator = WeeklyGenerator(anchor, Recurrence(type=2), None, 1000, skip_before=skip)
        first = next(iter(generator))
        assert skip - timedelta(days=14) <= first < skip

    def test_monthly_when_skip_before_then_starts_previous_month(self):
        anchor = datetime(2020, 3, 10, 9, 0, tzinfo=UTC)
        skip = datetime(2024, 6, 20, tzinfo=UTC)
        generator = MonthlyGenerator(anchor, Recurrence(type=3), None, 500, skip_before=skip)
        assert _take(generator, 2) == [
            datetime(2024, 5, 10, 9, 0, tzinfo=UTC),
            datetime(2024, 6, 10, 9, 0, tzinfo=UTC),
        ]

    def test_skip_before_when_interval_not_positive_then_ignored(self):
        anchor = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        skip = datetime(2024, 6, 1, tzinfo=UTC)
        rule = Recurrence(type=1, repeat_interval=-1)
        generator = DailyGenerator(anchor, rule, None, 2, skip_before=skip)
        assert next(iter(generator)) == anchor

    def test_create_generator_when_skip_before_then_passed_through(self):
        anchor = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        skip = datetime(2024, 6, 1, tzinfo=UTC)
        generator = create_generator(Recurrence(type=1), anchor, skip_before=skip)
        assert generator.skip_before == skip
