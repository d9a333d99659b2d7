"""Flask CLI commands for TrackSage."""

from __future__ import annotations

from datetime import date

import click
from flask import current_app

from .services import recurrence, streaks


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("tracksage-generate")
    @click.option("--user-id", type=int, required=True, help="Owner of the tasks to expand")
    @click.option("--horizon", type=int, default=None, help="Days ahead to generate (defaults to config)")
    def tracksage_generate(user_id: int, horizon: int | None) -> None:
        """Generate occurrences for every task of a user."""

        ctx = current_app.extensions["tracksage"]
        horizon_days = ctx.config.GENERATION_HORIZON_DAYS if horizon is None else horizon
        inserted = recurrence.generate_for_user(
            user_id,
            horizon_days=horizon_days,
            tasks=ctx.task_repo,
            occurrences=ctx.occurrence_repo,
            today=date.today(),
        )
        for task_id, count in sorted(inserted.items()):
            click.echo(f"task {task_id}: {count} new")
        click.echo(f"Inserted {sum(inserted.values())} occurrence(s) across {len(inserted)} task(s).")

    @app.cli.command("tracksage-streaks")
    @click.option("--user-id", type=int, required=True)
    def tracksage_streaks(user_id: int) -> None:
        """Recompute and print streaks for every task of a user."""

        ctx = current_app.extensions["tracksage"]
        results = streaks.recompute_for_user(
            user_id,
            tz=ctx.config.timezone(),
            threshold=ctx.threshold,
            tasks=ctx.task_repo,
            occurrences=ctx.occurrence_repo,
            progress=ctx.progress_repo,
            streaks=ctx.streak_repo,
        )
        for task_id, result in sorted(results.items()):
            click.echo(f"task {task_id}: current={result.current} best={result.best}")
