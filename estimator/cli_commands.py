"""
Flask CLI commands.

Commands:
- flask init-db: Create tables and seed categories, catalog and settings
- flask recalc-totals: Recompute every project's cached total
- flask import-items PROJECT_ID FILE: Bulk import line items from CSV/XLSX
- flask sync push|pull: Upload or download the database file
"""
import os

import click

from estimator.database import get_database
from estimator.exceptions import EstimatorError
from estimator.services.cloud_sync_service import get_cloud_sync
from estimator.services.estimate_session import get_sessions
from estimator.services.import_service import read_records
from estimator.services.store_service import get_store
from estimator.utils.formatters import money


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create tables and seed lookup data (idempotent)."""
        database = get_database()
        database.create_all()
        counts = get_store().seed_defaults()
        click.echo(click.style('Database ready.', fg='green', bold=True))
        click.echo(f"   Categories added: {counts['categories']}")
        click.echo(f"   Materials added: {counts['materials']}")

    @app.cli.command('recalc-totals')
    def recalc_totals():
        """Recompute the cached total of every project from its line items."""
        store = get_store()
        failures = 0
        for project_id in store.project_ids():
            try:
                total = store.recalculate_project_total(project_id)
                click.echo(f"   Project {project_id}: {money(total)}")
            except EstimatorError as e:
                failures += 1
                click.echo(click.style(f"   Project {project_id}: {e.message}", fg='red'))
        if failures:
            raise click.ClickException(f"{failures} project(s) could not be recalculated.")
        click.echo(click.style('Totals recalculated.', fg='green'))

    @app.cli.command('import-items')
    @click.argument('project_id', type=int)
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_items(project_id, path):
        """Bulk import line items into a project from a CSV or XLSX file."""
        allowed = app.config.get('ALLOWED_IMPORT_EXTENSIONS', {'csv', 'xlsx'})
        try:
            with open(path, 'rb') as f:
                records = read_records(os.path.basename(path), f, allowed)
            registry = get_sessions()
            result = registry.get(project_id).bulk_import(records)
            registry.discard(project_id)
        except EstimatorError as e:
            raise click.ClickException(e.message)

        click.echo(click.style(f"Imported {result.succeeded} item(s).", fg='green', bold=True))
        click.echo(f"   Skipped (no description): {result.skipped}")
        for failure in result.failures:
            click.echo(click.style(f"   Failed: {failure}", fg='red'))

    @app.cli.command('sync')
    @click.argument('direction', type=click.Choice(['push', 'pull']))
    def sync(direction):
        """Push the local database to the cloud, or pull the cloud copy."""
        client = get_cloud_sync()
        if not client.enabled:
            raise click.ClickException('CLOUD_SYNC_URL is not configured.')

        path = get_database().file_path
        if not path:
            raise click.ClickException('Cloud sync needs a file-backed database.')

        if direction == 'push':
            written = get_sessions().flush_all()
            if written:
                click.echo(f"   Flushed {written} pending edit(s).")
            ok = client.push_file(path)
        else:
            get_sessions().close_all()
            get_database().close()
            ok = client.pull_file(path)

        if not ok:
            raise click.ClickException(f'Cloud {direction} failed; see log for details.')
        click.echo(click.style(f'Cloud {direction} complete.', fg='green', bold=True))
