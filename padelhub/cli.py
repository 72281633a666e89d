# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# padelhub/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@padelhub.local --admin-password "changeme" --admin-name "Admin"]
#   Create tables and a first ADMIN if no admin exists yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their role.
# - python -m flask users create --email staff@padelhub.local --name "Front Desk" --password "changeme" --role STAFF
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list [--role STAFF]
#   List permission codes, optionally only those a role grants.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked sessions older than the retention window.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .extensions import db
from .models import User, USER_ROLES
from .permissions import PERMISSION_DEFINITIONS, get_role_permissions
from .services.auth_service import create_user
from .services import session_service
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@padelhub.local', show_default=True, help='Email of the first admin')
@click.option('--admin-password', default='changeme', show_default=True, help='Password of the first admin')
@click.option('--admin-name', default='Administrator', show_default=True, help='Display name of the first admin')
@with_appcontext
def init_system(admin_email, admin_password, admin_name):
    """
    Initialize PadelHub: create tables and the first ADMIN account.

    Idempotent: tables are only created if missing, and no admin is added
    when one already exists.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing PadelHub...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing_admin = db.session.query(User).filter_by(role="ADMIN").first()
    if existing_admin:
        click.echo(f"PASS Using existing admin: {existing_admin.email} (ID: {existing_admin.id})")
        return

    try:
        admin = create_user(email=admin_email, name=admin_name, password=admin_password, role="ADMIN")
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(f"Failed to create admin '{admin_email}': {e}")

    click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")
    click.echo("\nSECURITY Change the admin password immediately in production!")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), default='STAFF', show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """Create a user."""
    try:
        user = create_user(email=email, name=name, password=password, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.email} ({user.role}, ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role':<8} {'Last login'}")
    click.echo("="*90)

    for user in users:
        last_login = str(user.last_login_at)[:19] if user.last_login_at else "-"
        click.echo(f"{user.id:<5} {user.email:<35} {user.name:<25} {user.role:<8} {last_login}")

    click.echo("="*90 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(list(USER_ROLES)), help='Only permissions this role grants')
def list_permissions_cli(role):
    """List permission codes."""
    granted = get_role_permissions(role) if role else None

    for code, name, description, category in PERMISSION_DEFINITIONS:
        if granted is not None and code not in granted:
            continue
        click.echo(f"{category:<10} {code:<20} {description}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """
    Cleanup expired and revoked sessions.

    Default retention: 30 days.
    """
    deleted = session_service.cleanup_expired_sessions(retention=timedelta(days=retention_days))
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
