"""Flask CLI commands for HabitKeeper."""

from __future__ import annotations

from datetime import date

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitkeeper-create-user")
    @click.argument("username")
    @click.password_option("--password", help="Password for the new account")
    def habitkeeper_create_user(username: str, password: str) -> None:
        """Create a login account."""

        from .extensions import get_services
        from .services.auth import UsernameTaken, create_user

        try:
            user = create_user(
                username=username,
                password=password,
                session_factory=get_services(app).session_factory,
            )
        except UsernameTaken as exc:
            raise click.ClickException(str(exc)) from exc
        except ValueError as exc:
            raise click.BadParameter(str(exc)) from exc
        click.echo(f"Created user {user.username} (id {user.id})")

    @app.cli.command("habitkeeper-stats")
    @click.argument("username")
    @click.option(
        "--today",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=None,
        help="Reference day (defaults to the current date)",
    )
    def habitkeeper_stats(username: str, today) -> None:
        """Print streaks and completion rate for each habit of a user."""

        from .extensions import get_services
        from .services.auth import get_user_by_username
        from .services.habits import compute_habit_stats

        services = get_services(app)
        user = get_user_by_username(username, services.session_factory)
        if user is None:
            raise click.ClickException(f"Unknown user {username!r}")

        reference = today.date() if today else date.today()
        window = services.config.COMPLETION_WINDOW_DAYS
        habits = services.habit_repo.list_for_user(user_id=user.id)
        if not habits:
            click.echo("No habits yet.")
            return
        histories = services.habit_repo.histories_for(
            [habit.id for habit in habits], user_id=user.id
        )
        for habit in habits:
            stats = compute_habit_stats(
                histories.get(habit.id, []), habit.frequency, today=reference, window_days=window
            )
            click.echo(
                f"{habit.name} [{habit.frequency}]: current {stats.current_streak}, "
                f"best {stats.best_streak}, {stats.completion_rate}% over {window} days"
            )
