# Overview: Flask CLI command groups for bootstrap, tenant setup and inspection.

# backend/ventas/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to ventas (PowerShell: $env:FLASK_APP="ventas").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (no-op for tables that already exist).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
#   List all organizations with customer/product/sale counts.
# - python -m flask orgs create --name "Tienda Centro"
#   Create a new organization (tenant).
#
# Users (identities live in the auth service; we only store their roles):
# - python -m flask users assign-role --user-id <auth uid> --org-id 1 --role admin
#   Give a user a role in an organization (deactivates their other roles).
# - python -m flask users list [--org-id 1]
#
# Inventory inspection:
# - python -m flask inventory show --org-id 1
#   Print derived stock per product.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Organization, UserRole, Customer, Product, Sale
from .models.tenancy import ROLES
from .services.inventory_service import load_inventory
from .services.tenant_service import TenantContext


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask orgs create' next.")


# =============================================================================
# ORGANIZATION MANAGEMENT COMMANDS (MULTI-TENANT)
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id.asc()).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Customers':<10} {'Products':<10} {'Sales'}")
    click.echo("="*80)

    for org in orgs:
        customer_count = db.session.query(Customer).filter_by(org_id=org.id).count()
        product_count = db.session.query(Product).filter_by(org_id=org.id).count()
        sale_count = db.session.query(Sale).filter_by(org_id=org.id).count()

        click.echo(f"{org.id:<5} {org.name:<30} {customer_count:<10} {product_count:<10} {sale_count}")

    click.echo("="*80 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@with_appcontext
def create_org_cli(name):
    """Create a new organization (tenant)."""
    org = Organization(name=name.strip())
    db.session.add(org)
    db.session.commit()

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id})")


# =============================================================================
# USER ROLE COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User role assignment commands."""


@users_group.command('assign-role')
@click.option('--user-id', required=True, help='User id issued by the auth service')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--role', type=click.Choice(ROLES), required=True, help='Role')
@with_appcontext
def assign_role_cli(user_id, org_id, role):
    """Give a user a role in an organization; only one role stays active."""
    org = db.session.get(Organization, org_id)
    if not org:
        click.echo(f"FAIL Organization ID {org_id} not found")
        return

    db.session.query(UserRole).filter_by(user_id=user_id, is_active=True).update({"is_active": False})
    db.session.add(UserRole(user_id=user_id, org_id=org_id, role=role, is_active=True))
    db.session.commit()

    click.echo(f"PASS {user_id} is now '{role}' in '{org.name}'")


@users_group.command('list')
@click.option('--org-id', type=int, help='Filter by organization ID')
@with_appcontext
def list_users(org_id):
    """List user role assignments."""
    query = db.session.query(UserRole).order_by(UserRole.org_id.asc(), UserRole.id.asc())
    if org_id:
        query = query.filter_by(org_id=org_id)
    rows = query.all()

    if not rows:
        click.echo("No user roles found.")
        return

    click.echo(f"{'User':<40} {'Org':<6} {'Role':<10} {'Active'}")
    for row in rows:
        click.echo(f"{row.user_id:<40} {row.org_id:<6} {row.role:<10} {'Yes' if row.is_active else 'No'}")


# =============================================================================
# INVENTORY INSPECTION
# =============================================================================

@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('show')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@with_appcontext
def show_inventory(org_id):
    """Print derived stock per product."""
    snapshot = load_inventory(TenantContext(org_id=org_id))
    if not snapshot.is_ready:
        click.echo(f"FAIL {snapshot.error}")
        return

    click.echo(f"{'Code':<16} {'Name':<30} {'Stock':>8} {'Value':>14}")
    for item in snapshot.items:
        flag = "  LOW" if item["low_stock"] else ""
        click.echo(f"{item['code']:<16} {item['name']:<30} {item['available']:>8} {item['value']:>14,.2f}{flag}")
    click.echo(f"{'':<16} {'Total':<30} {'':>8} {snapshot.total_value:>14,.2f}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
