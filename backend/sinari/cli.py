# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/sinari/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "sinari:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--password "Password123!"]
#   Idempotent bootstrap: creates tables and the root owner (ROOT_OWNER_EMAIL).
#
# User administration:
# - python -m flask users create --username admin --email admin@sinari.local --name Admin --password "Password123!" --role ADMIN
#   Create a user (prompts if options are omitted).
# - python -m flask users set-role admin OWNER
#   Change a user's role by username.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import ALL_ROLES, ROLE_OWNER
from .services.auth_service import create_user
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--password', default='Password123!', help='Root owner password (first run only)')
@with_appcontext
def init_system(password):
    """
    Create all tables and the root owner account.

    The root owner's role can never be changed through the API.
    """
    click.echo("START Initializing Sinari...")

    db.create_all()
    click.echo("PASS Tables ready")

    email = current_app.config["ROOT_OWNER_EMAIL"].lower()
    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        click.echo(f"WARN  Root owner {email} already exists, skipping...")
        return

    try:
        user = create_user(
            username="owner",
            email=email,
            password=password,
            name="Owner",
            role=ROLE_OWNER,
        )
    except ValidationError as e:
        click.echo(f"FAIL Could not create root owner: {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created root owner: {user.username} ({user.email})")


@click.group('users')
def users_group():
    """User administration commands."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ALL_ROLES, case_sensitive=False), default='CUSTOMER', show_default=True)
@with_appcontext
def create_user_command(username, email, name, password, role):
    """Create a user with the given role."""
    try:
        user = create_user(
            username=username,
            email=email,
            password=password,
            name=name,
            role=role.upper(),
        )
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")


@users_group.command('set-role')
@click.argument('username')
@click.argument('role', type=click.Choice(ALL_ROLES, case_sensitive=False))
@with_appcontext
def set_role_command(username, role):
    """Change a user's role (bypasses the API's owner guards)."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        raise SystemExit(1)

    user.role = role.upper()
    db.session.commit()
    click.echo(f"PASS {user.username} is now {user.role}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
