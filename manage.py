"""Management script for database and subscription maintenance tasks"""

import click
from dotenv import load_dotenv
from flask.cli import FlaskGroup

# Config classes read the environment at import time
load_dotenv()

from marketplace import create_app  # noqa: E402
from marketplace.extensions import db  # noqa: E402
from marketplace.services.subscription_service import get_lifecycle_manager  # noqa: E402

cli = FlaskGroup(create_app=create_app)


@cli.command("init-db")
def init_db():
    """Create all tables"""
    db.create_all()
    click.echo("Database initialized")


@cli.command("drop-db")
@click.confirmation_option(prompt="Are you sure you want to drop all tables?")
def drop_db():
    """Drop all tables"""
    db.drop_all()
    click.echo("Database dropped")


@cli.command("process-trials")
def process_trials():
    """Activate every trial past its end date (same work as the hourly Celery task)"""
    activated = get_lifecycle_manager().process_expired_trials()
    click.echo(f"Activated {len(activated)} subscription(s)")


if __name__ == "__main__":
    cli()
