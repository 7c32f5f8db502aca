# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/kiosk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet (quick local setup).
# - python -m flask db upgrade
#   Apply backend/migrations (the same schema, tracked by Alembic).
#
# Tenant management:
# - python -m flask tenants create --name "Lemon Stand" [--slug lemon-stand]
# - python -m flask tenants list
#
# Users:
# - python -m flask users create --tenant lemon-stand --username admin --password "Password123" --role ADMIN
# - python -m flask users list --tenant lemon-stand
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Tenant, ROLES, ROLE_CASHIER
from .services import auth_service, session_service, tenant_service
from .validation import ConflictError, NotFoundError, ValidationError


def _resolve_tenant(ref: str) -> Tenant:
    """Accept a tenant id or slug."""
    tenant = db.session.get(Tenant, ref)
    if tenant is None:
        tenant = db.session.query(Tenant).filter_by(slug=ref).first()
    if tenant is None:
        raise click.ClickException(f"Tenant not found: {ref}")
    return tenant


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("PASS Database tables created")


@click.group('tenants')
def tenants_group():
    """Tenant (business) management."""


@tenants_group.command('create')
@click.option('--name', required=True, help='Display name')
@click.option('--slug', default=None, help='URL slug (defaults to a slug of the name)')
@click.option('--contact-email', default=None)
@with_appcontext
def create_tenant(name, slug, contact_email):
    try:
        tenant = tenant_service.create_tenant(name, slug, contact_email=contact_email)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, slug: {tenant.slug})")


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    tenants = tenant_service.list_tenants()
    if not tenants:
        click.echo("No tenants found.")
        return
    for t in tenants:
        status = "active" if t.is_active else "inactive"
        click.echo(f"{t.id}  {t.slug:<24} {t.name} ({status})")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--tenant', 'tenant_ref', required=True, help='Tenant id or slug')
@click.option('--username', prompt=True)
@click.option('--email', default=None)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES, case_sensitive=False), default=ROLE_CASHIER, show_default=True)
@with_appcontext
def create_user(tenant_ref, username, email, password, role):
    tenant = _resolve_tenant(tenant_ref)
    try:
        user = auth_service.create_user(
            tenant_id=tenant.id,
            username=username,
            password=password,
            email=email,
            role=role.upper(),
            bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except (ValidationError, ConflictError, NotFoundError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} ({user.role}) in {tenant.slug}")


@users_group.command('list')
@click.option('--tenant', 'tenant_ref', required=True, help='Tenant id or slug')
@with_appcontext
def list_users(tenant_ref):
    tenant = _resolve_tenant(tenant_ref)
    users = auth_service.list_users(tenant.id)
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.username:<20} {u.role:<8} {u.email or '-'} ({status})")


@click.group('maintenance')
def maintenance_group():
    """Periodic cleanup tasks."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} stale sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
