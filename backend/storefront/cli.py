# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--password "Password123!"]
#   Idempotent bootstrap: creates tables, the upload folder and the ADMIN_EMAIL account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all back-office users and whether they pass the admin gate.
# - python -m flask users create --email admin@storefront.local --password "Password123!"
#   Create a user (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions older than 30 days.

from pathlib import Path

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import PasswordValidationError, create_user, is_admin, normalize_email
from .services import session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default='Password123!', show_default=True, help='Password for a newly created admin')
@with_appcontext
def init_system(password):
    """
    Initialize the storefront: tables, upload folder and the admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing storefront...")

    db.create_all()
    click.echo("PASS Tables ready")

    if current_app.config.get("STORAGE_BACKEND", "local") == "local":
        folder = Path(current_app.config["UPLOAD_FOLDER"]) / current_app.config["STORAGE_BUCKET"]
        folder.mkdir(parents=True, exist_ok=True)
        click.echo(f"PASS Upload folder: {folder}")

    admin_email = normalize_email(current_app.config["ADMIN_EMAIL"])
    existing = db.session.query(User).filter_by(email=admin_email).first()
    if existing:
        click.echo(f"PASS Using existing admin: {admin_email}")
    else:
        try:
            create_user(admin_email, password)
        except PasswordValidationError as e:
            raise click.ClickException(f"Password validation failed: {e}")
        click.echo(f"PASS Created admin: {admin_email}")

    click.echo("DONE Storefront initialized.")


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
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, password):
    """
    Create a back-office user.

    Only the account matching ADMIN_EMAIL can enter the admin area.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email, password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email}")
    if not is_admin(user):
        click.echo(f"NOTE {user.email} is not ADMIN_EMAIL and cannot enter the admin area")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Email':<40} {'Active':<8} {'Admin'}")
    click.echo("="*70)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        admin_str = "Yes" if is_admin(user) else "No"
        click.echo(f"{user.id:<5} {user.email:<40} {active_str:<8} {admin_str}")

    click.echo("="*70 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
