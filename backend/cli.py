import click
import logging
from flask.cli import with_appcontext
from sqlalchemy import select
from .models import db, PoleCapture
from shared.enums import POLE_TYPE_FLAGS, status_flags

logger = logging.getLogger(__name__)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create the pole and user tables if they do not exist."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database tables created successfully")
    click.echo('Initialized the database.')


@click.command('check-pole-flags')
@click.option('--fix', is_flag=True, help='Rewrite the type flags from each record\'s status')
@with_appcontext
def check_pole_flags_command(fix):
    """Check that every pole has exactly one type flag and that it matches its status."""
    logger.info(f"Starting pole flag consistency check (fix={fix})")
    poles = db.session.execute(select(PoleCapture)).scalars().all()
    issues_found = 0
    fixed = 0

    for pole in poles:
        expected = status_flags(pole.status)
        actual = {column: bool(getattr(pole, column)) for column in POLE_TYPE_FLAGS}
        if actual == expected:
            continue

        issues_found += 1
        click.echo(f"  Pole {pole.image_uri} ({pole.status.value}) has flags {actual}")
        if fix:
            for column, value in expected.items():
                setattr(pole, column, value)
            fixed += 1

    if fix and fixed:
        db.session.commit()
        logger.info(f"Fixed type flags on {fixed} poles")

    click.echo(f"Checked {len(poles)} poles: {issues_found} issues found, {fixed} fixed.")
