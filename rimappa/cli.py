import csv
import os

import click

from rimappa import db
from rimappa.geocoding import Coordinates, Geocoder
from rimappa.importer import export_csv, import_csv
from rimappa.models import User, UserRole
from rimappa.store import CompetitionStore


def seed_admin(email, password, name='Administrator'):
    """Create the administrator account if it is missing (idempotent)."""
    admin = User.query.filter_by(email=email).first()
    if admin:
        return admin, False
    admin = User(name=name, email=email, role=UserRole.ADMIN.value)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return admin, True


def register_commands(app):

    @app.cli.command('init-db')
    @click.option('--admin-email', default=lambda: os.environ.get('ADMIN_EMAIL', 'admin@rimappa.app'),
                  show_default='ADMIN_EMAIL or admin@rimappa.app')
    @click.option('--admin-password', default=lambda: os.environ.get('ADMIN_PASSWORD', 'admin123'),
                  show_default='ADMIN_PASSWORD or admin123')
    def init_db_command(admin_email, admin_password):
        """Create tables and the administrator account."""
        db.create_all()
        _, created = seed_admin(admin_email, admin_password)
        if created:
            click.echo(f"Admin user created: {admin_email}")
        else:
            click.echo("Admin user already exists.")

    @app.cli.command('import-competitions')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    @click.option('--default-organizer', 'default_organizer_id', default=None,
                  help='Organizer id for rows without organizerId (required for legacy files)')
    @click.option('--fallback-to-center', is_flag=True,
                  help='Place rows that cannot be geocoded at the default map center')
    def import_competitions_command(path, default_organizer_id, fallback_to_center):
        """Import competitions from a ';'-delimited CSV file."""
        with open(path, encoding='utf-8-sig') as f:
            text = f.read()

        fallback = Coordinates(*app.config['MAP_CENTER']) if fallback_to_center else None
        try:
            report = import_csv(text, CompetitionStore(db.session), Geocoder.from_config(app.config),
                                default_organizer_id=default_organizer_id, fallback=fallback)
        except (ValueError, csv.Error) as e:
            raise click.ClickException(str(e))

        for row in report.rows:
            if row.outcome in ('skipped', 'failed'):
                where = f" [{row.field}]" if row.field else ''
                click.echo(f"  line {row.line}: {row.outcome}{where} {row.reason}", err=True)
            for warning in row.warnings:
                click.echo(f"  line {row.line}: warning {warning}", err=True)
        click.echo(f"{report.schema} file: {report.summary()}")

    @app.cli.command('export-competitions')
    @click.argument('path', type=click.Path(dir_okay=False, writable=True))
    @click.option('--status', default=None, help='Only export competitions with this status')
    def export_competitions_command(path, status):
        """Write all competitions to PATH in the canonical CSV layout."""
        competitions = CompetitionStore(db.session).find_many(status=status)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(export_csv(competitions))
        click.echo(f"Exported {len(competitions)} competitions to {path}")
