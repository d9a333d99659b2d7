"""Integration tests for the JSON blueprints."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path


def _create(client, headers, **payload):
    body = {"activityName": "Read", **payload}
    response = client.post("/tasks/", json=body, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["id"]


class TestTaskRoutes:
    def test_create_and_list(self, client, auth_headers):
        later = _create(client, auth_headers, activityName="Essay", timer=60, deadline="2030-01-10")
        undated = _create(client, auth_headers, activityName="Walk", repeat="daily", timer=20)
        sooner = _create(client, auth_headers, activityName="Taxes", counter=1, deadline="2030-01-05")

        response = client.get("/tasks/", headers=auth_headers)

        assert response.status_code == 200
        rows = response.get_json()
        assert [row["task_id"] for row in rows] == [sooner, later, undated]
        assert rows[2]["repeat"] == "daily"
        assert rows[2]["progress_minutes"] == 0

    def test_create_requires_name(self, client, auth_headers):
        response = client.post("/tasks/", json={"timer": 10}, headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"

    def test_create_rejects_non_positive_target(self, client, auth_headers):
        response = client.post("/tasks/", json={"activityName": "x", "timer": 0}, headers=auth_headers)
        assert response.status_code == 400

    def test_create_rejects_unknown_repeat(self, client, auth_headers):
        response = client.post("/tasks/", json={"activityName": "x", "repeat": "hourly"}, headers=auth_headers)
        assert response.status_code == 400

    def test_missing_user(self, client):
        response = client.get("/tasks/")
        assert response.status_code == 400
        assert "user_id" in response.get_json()["message"]

    def test_update_and_delete(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily")

        updated = client.put(
            f"/tasks/{task_id}",
            json={"activityName": "Read more", "repeat": "weekly", "counter": 2},
            headers=auth_headers,
        )
        assert updated.status_code == 200

        rows = client.get("/tasks/", headers=auth_headers).get_json()
        assert rows[0]["activity_name"] == "Read more"
        assert rows[0]["repeat"] == "weekly"

        assert client.delete(f"/tasks/{task_id}", headers=auth_headers).status_code == 200
        assert client.delete(f"/tasks/{task_id}", headers=auth_headers).status_code == 404

    def test_log_progress_updates_streak(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily", timer=20)

        response = client.post(
            f"/tasks/{task_id}/progress",
            json={"type": "minutes", "value": 25},
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.get_json()
        assert body["streak"]["current_streak"] == 1
        assert body["streak"]["best_streak"] == 1

    def test_log_progress_wrong_metric(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily", timer=20)
        response = client.post(
            f"/tasks/{task_id}/progress",
            json={"type": "count", "value": 1},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_log_progress_unknown_task(self, client, auth_headers):
        response = client.post("/tasks/999/progress", json={"type": "minutes", "value": 5}, headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"

    def test_generate_one_task(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="weekly", counter=3)

        payload = {"task_id": task_id, "anchor_date": "2024-01-01", "horizon_days": 21}
        first = client.post("/tasks/generate", json=payload, headers=auth_headers)
        second = client.post("/tasks/generate", json=payload, headers=auth_headers)

        assert first.get_json()["inserted"] == {str(task_id): 4}
        assert second.get_json()["inserted"] == {str(task_id): 0}

        rows = client.get(f"/habits/{task_id}/occurrences", headers=auth_headers).get_json()
        assert [row["date"] for row in rows] == ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-22"]

    def test_generate_all_uses_default_horizon(self, client, auth_headers, app):
        task_id = _create(client, auth_headers, repeat="daily")

        response = client.post("/tasks/generate", json={}, headers=auth_headers)

        horizon = app.config["GENERATION_HORIZON_DAYS"]
        assert response.get_json()["inserted"] == {str(task_id): horizon + 1}

    def test_generate_rejects_negative_horizon(self, client, auth_headers):
        response = client.post("/tasks/generate", json={"horizon_days": -1}, headers=auth_headers)
        assert response.status_code == 400

    def test_generate_anchor_needs_task(self, client, auth_headers):
        response = client.post("/tasks/generate", json={"anchor_date": "2024-01-01"}, headers=auth_headers)
        assert response.status_code == 400


class TestHabitRoutes:
    def test_complete_and_streak(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily")
        today = datetime.now(timezone.utc).date()

        for day in (today - timedelta(days=1), today):
            response = client.put(
                f"/habits/{task_id}/complete",
                json={"date": day.isoformat(), "completed": True, "seconds_logged": 60},
                headers=auth_headers,
            )
            assert response.status_code == 200

        occurrence = response.get_json()["occurrence"]
        assert occurrence["completed"] is True
        assert occurrence["completed_at"] is not None

        streak = client.get(f"/streaks/{task_id}", headers=auth_headers).get_json()
        assert streak["current_streak"] == 2
        assert streak["best_streak"] == 2

        current = client.get("/streaks/current", headers=auth_headers).get_json()
        assert current == [{"task_id": task_id, "activity_name": "Read", "streak_days": 2}]

        overall = client.get("/streaks/overall", headers=auth_headers).get_json()
        assert overall == {"current_streak_days": 2, "best_streak_days": 2}

    def test_complete_accumulative_tops_up_window(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily", timer=30, counter=4)
        today = datetime.now(timezone.utc).date().isoformat()
        client.post(f"/tasks/{task_id}/progress", json={"type": "minutes", "value": 10}, headers=auth_headers)

        for _ in range(2):
            response = client.put(
                f"/habits/{task_id}/complete",
                json={"date": today, "completed": True},
                headers=auth_headers,
            )
            assert response.status_code == 200

        row = client.get(f"/habits/day?date={today}", headers=auth_headers).get_json()["rows"][0]
        assert row["completed"] is True
        assert row["progress_minutes"] == 30
        assert row["progress_count"] == 4

        streak = client.get(f"/streaks/{task_id}", headers=auth_headers).get_json()
        assert streak["current_streak"] == 1
        assert streak["last_done_day"] == today

    def test_uncomplete_accumulative_keeps_ledger(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="weekly", counter=3)
        url = f"/habits/{task_id}/complete"

        client.put(url, json={"date": "2024-03-06", "completed": True}, headers=auth_headers)
        client.put(url, json={"date": "2024-03-06", "completed": False}, headers=auth_headers)

        row = client.get("/habits/day?date=2024-03-04", headers=auth_headers).get_json()["rows"][0]
        assert row["progress_count"] == 3
        assert row["window_start"].startswith("2024-03-04")

    def test_seconds_logged_monotonic(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily")
        url = f"/habits/{task_id}/complete"

        client.put(url, json={"date": "2024-03-01", "completed": True, "seconds_logged": 50}, headers=auth_headers)
        response = client.put(
            url, json={"date": "2024-03-01", "completed": True, "seconds_logged": 30}, headers=auth_headers
        )

        assert response.get_json()["occurrence"]["seconds_logged"] == 50

    def test_complete_validation(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily")
        url = f"/habits/{task_id}/complete"

        assert client.put(url, json={"date": "2024-13-01", "completed": True}, headers=auth_headers).status_code == 400
        assert client.put(url, json={"date": "2024-03-01", "completed": "yes"}, headers=auth_headers).status_code == 400
        assert (
            client.put(
                url, json={"date": "2024-03-01", "completed": True, "seconds_logged": -5}, headers=auth_headers
            ).status_code
            == 400
        )

    def test_complete_unknown_task(self, client, auth_headers):
        response = client.put(
            "/habits/404/complete", json={"date": "2024-03-01", "completed": True}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_day_agenda(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily", timer=20)
        client.post(
            f"/tasks/{task_id}/progress",
            json={"type": "minutes", "value": 20, "at": "2024-03-01T08:00:00Z"},
            headers=auth_headers,
        )

        response = client.get("/habits/day?date=2024-03-01", headers=auth_headers)

        body = response.get_json()
        assert body["date"] == "2024-03-01"
        assert body["rows"][0]["completed"] is True
        assert body["rows"][0]["progress_minutes"] == 20

    def test_day_agenda_bad_timezone(self, client, auth_headers):
        response = client.get("/habits/day?date=2024-03-01&tz=Mars/Olympus", headers=auth_headers)
        assert response.status_code == 400


class TestStreakAndStatsRoutes:
    def test_unknown_task_streak_reads_zero(self, client, auth_headers):
        body = client.get("/streaks/12345", headers=auth_headers).get_json()
        assert body["current_streak"] == 0
        assert body["best_streak"] == 0

    def test_empty_listings(self, client, auth_headers):
        assert client.get("/streaks/current", headers=auth_headers).get_json() == []
        assert client.get("/streaks/best", headers=auth_headers).get_json() == []

    def test_recompute_all(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="daily", counter=2)
        client.post(f"/tasks/{task_id}/progress", json={"type": "count", "value": 2}, headers=auth_headers)

        body = client.post("/streaks/recompute", headers=auth_headers).get_json()

        assert body[str(task_id)]["current_streak"] == 1

    def test_completion_daily_clamps(self, client, auth_headers):
        body = client.get("/stats/completion/daily?days=500", headers=auth_headers).get_json()
        assert len(body) == 90

    def test_completion_weekly_default(self, client, auth_headers):
        body = client.get("/stats/completion/weekly", headers=auth_headers).get_json()
        assert len(body) == 8
        assert all(date.fromisoformat(row["start"]).weekday() == 0 for row in body)

    def test_progress_window(self, client, auth_headers):
        task_id = _create(client, auth_headers, repeat="weekly", counter=4)
        client.post(f"/tasks/{task_id}/progress", json={"type": "count", "value": 2}, headers=auth_headers)

        body = client.get("/stats/progress/weekly", headers=auth_headers).get_json()

        assert body["window"] == "weekly"
        assert body["rows"][0]["pct"] == 0.5

    def test_progress_unknown_window(self, client, auth_headers):
        assert client.get("/stats/progress/hourly", headers=auth_headers).status_code == 400


class TestStoreFailures:
    def test_unreachable_store_maps_to_503(self, app, client, auth_headers):
        ctx = app.extensions["tracksage"]
        db_path = Path(ctx.engine.url.database)
        ctx.engine.dispose()
        db_path.unlink()
        # A directory where the database file should be cannot be opened.
        db_path.mkdir()

        response = client.get("/tasks/", headers=auth_headers)

        assert response.status_code == 503
        assert response.get_json()["error"] == "store_unavailable"
