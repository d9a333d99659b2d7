"""Tests for occurrence generation from repeat rules."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from tracksage.errors import NotFoundError, ValidationError
from tracksage.models import Repeat
from tracksage.services import completion, recurrence


class TestOccurrenceDates:
    """Candidate dates per repeat kind, before anything is stored."""

    def test_daily_covers_anchor_through_horizon(self):
        dates = recurrence.occurrence_dates("daily", date(2024, 1, 1), 3)
        assert dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4)]

    def test_daily_stops_at_deadline_inclusive(self):
        deadline = date(2024, 1, 5)
        dates = recurrence.occurrence_dates("daily", date(2024, 1, 1), 30, deadline)
        assert dates[-1] == deadline
        assert deadline + timedelta(days=1) not in dates
        assert len(dates) == 5

    def test_weekly_keeps_weekday(self):
        dates = recurrence.occurrence_dates(Repeat.WEEKLY, date(2024, 1, 1), 21)
        assert dates == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]
        assert {day.weekday() for day in dates} == {0}

    def test_monthly_clamps_short_months_without_drift(self):
        dates = recurrence.occurrence_dates("monthly", date(2024, 1, 31), 60)
        assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_monthly_uses_calendar_months(self):
        dates = recurrence.occurrence_dates("monthly", date(2023, 1, 15), 90)
        assert dates == [date(2023, 1, 15), date(2023, 2, 15), date(2023, 3, 15), date(2023, 4, 15)]

    def test_yearly_generates_at_least_two(self):
        dates = recurrence.occurrence_dates("yearly", date(2024, 2, 29), 0)
        assert dates == [date(2024, 2, 29), date(2025, 2, 28)]

    def test_yearly_long_horizon(self):
        dates = recurrence.occurrence_dates("yearly", date(2020, 6, 1), 800)
        assert dates == [date(2020, 6, 1), date(2021, 6, 1), date(2022, 6, 1), date(2023, 6, 1)]

    def test_single_uses_anchor(self):
        assert recurrence.occurrence_dates(None, date(2024, 3, 3), 30) == [date(2024, 3, 3)]

    def test_single_without_anchor_uses_deadline(self):
        assert recurrence.occurrence_dates("", None, 30, date(2024, 3, 9)) == [date(2024, 3, 9)]

    def test_single_after_deadline_yields_nothing(self):
        assert recurrence.occurrence_dates(None, date(2024, 3, 10), 30, date(2024, 3, 9)) == []

    def test_zero_horizon_daily_is_anchor_only(self):
        assert recurrence.occurrence_dates("daily", date(2024, 1, 1), 0) == [date(2024, 1, 1)]

    @pytest.mark.parametrize("horizon", [-1, 1.5, True, "7"])
    def test_rejects_bad_horizon(self, horizon):
        with pytest.raises(ValidationError):
            recurrence.occurrence_dates("daily", date(2024, 1, 1), horizon)

    def test_repeating_task_needs_anchor(self):
        with pytest.raises(ValidationError):
            recurrence.occurrence_dates("weekly", None, 7, date(2024, 1, 31))

    def test_unknown_repeat_rejected(self):
        with pytest.raises(ValidationError):
            recurrence.occurrence_dates("fortnightly", date(2024, 1, 1), 7)


class TestGenerate:
    """Stored generation is additive and idempotent."""

    def test_daily_task_with_deadline(self, task_factory, occurrence_repo):
        task = task_factory(repeat="daily", deadline_date=date(2024, 1, 3))

        inserted = recurrence.generate(task, date(2024, 1, 1), 30, repository=occurrence_repo)

        assert inserted == 3
        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]

    def test_rerun_inserts_nothing(self, task_factory, occurrence_repo):
        task = task_factory(repeat="daily")

        first = recurrence.generate(task, date(2024, 1, 1), 6, repository=occurrence_repo)
        second = recurrence.generate(task, date(2024, 1, 1), 6, repository=occurrence_repo)

        assert first == 7
        assert second == 0
        assert len(occurrence_repo.list_for_task(task.id)) == 7

    def test_overlapping_horizon_only_adds_new_days(self, task_factory, occurrence_repo):
        task = task_factory(repeat="daily")
        recurrence.generate(task, date(2024, 1, 1), 3, repository=occurrence_repo)

        inserted = recurrence.generate(task, date(2024, 1, 3), 3, repository=occurrence_repo)

        assert inserted == 2
        assert len(occurrence_repo.list_for_task(task.id)) == 6

    def test_rerun_keeps_completion_state(self, task_factory, task_repo, occurrence_repo, user):
        task = task_factory(repeat="daily")
        recurrence.generate(task, date(2024, 1, 1), 2, repository=occurrence_repo)
        completion.set_completion(
            task.id,
            date(2024, 1, 2),
            True,
            120,
            user_id=user.id,
            tasks=task_repo,
            occurrences=occurrence_repo,
        )

        recurrence.generate(task, date(2024, 1, 1), 2, repository=occurrence_repo)

        row = occurrence_repo.get(task.id, date(2024, 1, 2))
        assert row.completed is True
        assert row.seconds_logged == 120

    def test_weekly_end_to_end(self, task_factory, occurrence_repo):
        task = task_factory(repeat="weekly", counter=3)

        recurrence.generate(task, date(2024, 1, 1), 21, repository=occurrence_repo)

        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]
        assert all(not row.completed for row in occurrence_repo.list_for_task(task.id))

    def test_explicit_deadline_overrides_task_deadline(self, task_factory, occurrence_repo):
        task = task_factory(repeat="daily", deadline_date=date(2024, 1, 10))

        inserted = recurrence.generate(
            task, date(2024, 1, 1), 30, date(2024, 1, 2), repository=occurrence_repo
        )

        assert inserted == 2


class TestScheduledGeneration:
    def test_generate_for_task_unknown(self, task_repo, occurrence_repo, user):
        with pytest.raises(NotFoundError):
            recurrence.generate_for_task(
                9999, user_id=user.id, horizon_days=7, tasks=task_repo, occurrences=occurrence_repo
            )

    def test_generate_for_task_other_user(self, task_factory, task_repo, occurrence_repo, other_user):
        task = task_factory(repeat="daily")
        with pytest.raises(NotFoundError):
            recurrence.generate_for_task(
                task.id,
                user_id=other_user.id,
                horizon_days=7,
                tasks=task_repo,
                occurrences=occurrence_repo,
            )

    def test_weekly_default_anchor_keeps_creation_weekday(self, task_factory, task_repo, occurrence_repo, user):
        # Created on a Wednesday
        task = task_factory(repeat="weekly", created_at=datetime(2024, 1, 3, 9, tzinfo=timezone.utc))

        recurrence.generate_for_task(
            task.id,
            user_id=user.id,
            horizon_days=14,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2024, 2, 5),
        )

        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days[0] == date(2024, 2, 7)
        assert {day.weekday() for day in days} == {2}

    def test_monthly_default_anchor_keeps_day_of_month(self, task_factory, task_repo, occurrence_repo, user):
        task = task_factory(repeat="monthly", created_at=datetime(2024, 1, 31, tzinfo=timezone.utc))

        recurrence.generate_for_task(
            task.id,
            user_id=user.id,
            horizon_days=30,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2024, 4, 2),
        )

        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days == [date(2024, 4, 30), date(2024, 5, 31)]

    def test_monthly_pass_after_short_month_keeps_month_end(self, task_factory, task_repo, occurrence_repo, user):
        task = task_factory(repeat="monthly", created_at=datetime(2024, 1, 31, tzinfo=timezone.utc))

        recurrence.generate_for_task(
            task.id,
            user_id=user.id,
            horizon_days=60,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2024, 2, 10),
        )

        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]

    def test_yearly_leap_day_returns_after_common_years(self, task_factory, task_repo, occurrence_repo, user):
        task = task_factory(repeat="yearly", created_at=datetime(2024, 2, 29, tzinfo=timezone.utc))

        recurrence.generate_for_user(
            user.id,
            horizon_days=365 * 3,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2025, 3, 1),
        )

        days = [row.occurred_on for row in occurrence_repo.list_for_task(task.id)]
        assert days[:3] == [date(2026, 2, 28), date(2027, 2, 28), date(2028, 2, 29)]

    def test_cycle_offset_counts_from_anchor(self):
        dates = recurrence.occurrence_dates("monthly", date(2024, 1, 31), 30, first_step=1)

        assert dates == [date(2024, 2, 29), date(2024, 3, 31)]

    def test_single_task_anchors_on_deadline(self, task_factory, task_repo, occurrence_repo, user):
        task = task_factory(deadline_date=date(2024, 6, 1))

        recurrence.generate_for_task(
            task.id,
            user_id=user.id,
            horizon_days=30,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2024, 5, 1),
        )

        assert [row.occurred_on for row in occurrence_repo.list_for_task(task.id)] == [date(2024, 6, 1)]

    def test_generate_for_user_counts_per_task(self, task_factory, task_repo, occurrence_repo, user):
        daily = task_factory("Walk", repeat="daily", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        once = task_factory("File taxes", deadline_date=date(2024, 4, 15))

        result = recurrence.generate_for_user(
            user.id,
            horizon_days=6,
            tasks=task_repo,
            occurrences=occurrence_repo,
            today=date(2024, 3, 1),
        )

        assert result == {daily.id: 7, once.id: 1}
