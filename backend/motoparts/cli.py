# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/motoparts/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Clear catalog and transaction data but keep users.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username kasir --password "Password123!" --role staff
#   Create a user (prompts if options are omitted).
#
# Stock inspection:
# - python -m flask stock low
#   List products at or below their minimum threshold.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    Brand, Category, Motorcycle, Product, ProductMotorcycleCompatibility,
    SessionToken, Transaction, TransactionItem, User,
)
from .services.auth_service import create_user, PasswordValidationError

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the database and a default admin user.

    Creates:
    - All tables (if missing)
    - User: admin / Password123!

    SECURITY: Change the password immediately in production!
    """
    click.echo("START Initializing motoparts...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).first()
    if existing:
        click.echo(f"WARN  User '{DEFAULT_ADMIN_USERNAME}' already exists, skipping...")
    else:
        create_user(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD, role="admin")
        click.echo(f"PASS Created user: {DEFAULT_ADMIN_USERNAME} with role 'admin'")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {DEFAULT_ADMIN_USERNAME} / {DEFAULT_ADMIN_PASSWORD}")
    click.echo("")


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


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear catalog and transaction data while keeping users.

    Removes: transactions and their items, compatibility rows, products,
    motorcycles, brands, categories and login sessions.
    """
    if not yes:
        click.confirm("WARN This will DELETE all catalog and transaction data. Are you sure?", abort=True)

    # Children before parents
    ordered = [
        TransactionItem,
        Transaction,
        ProductMotorcycleCompatibility,
        Product,
        Motorcycle,
        Brand,
        Category,
        SessionToken,
    ]
    for model in ordered:
        deleted = db.session.query(model).delete(synchronize_session=False)
        click.echo(f"DELETE  {model.__tablename__}: {deleted}")
    db.session.commit()

    click.echo("PASS Wipe complete. Users were kept.")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'staff']), default='admin', show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(username, password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        return
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found. Run: python -m flask system init")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<10} {'Active':<8} {'Last login'}")
    click.echo("="*70)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        last_login = user.last_login_at.strftime("%Y-%m-%d %H:%M") if user.last_login_at else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<10} {active_str:<8} {last_login}")

    click.echo("="*70 + "\n")


# =============================================================================
# STOCK COMMANDS
# =============================================================================

@click.group('stock')
def stock_group():
    """Stock inspection commands."""


@stock_group.command('low')
@with_appcontext
def low_stock():
    """List products at or below their minimum threshold."""
    products = (
        db.session.query(Product)
        .filter(Product.current_stock <= Product.min_threshold)
        .order_by(Product.current_stock.asc(), Product.id.asc())
        .all()
    )

    if not products:
        click.echo("PASS No products are low on stock.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<6} {'Category':<20} {'Brand':<20} {'Size':<12} {'Stock':<7} {'Min'}")
    click.echo("="*80)

    for p in products:
        category = p.category.name if p.category else "-"
        brand = p.brand.name if p.brand else "-"
        click.echo(
            f"{p.id:<6} {category:<20} {brand:<20} {p.size or '-':<12} "
            f"{p.current_stock:<7} {p.min_threshold}"
        )

    click.echo("="*80)
    click.echo(f"WARN {len(products)} product(s) need restocking\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
