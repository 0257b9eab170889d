# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` for migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Insert demo items and customers if the tables are empty.
#
# Inventory inspection:
# - python -m flask items list
# - python -m flask items low-stock
#   Items below LOW_STOCK_THRESHOLD.
#
# Customer ledger:
# - python -m flask ledger show 3
#   Print the computed ledger for customer 3.
#
# Credentials:
# - python -m flask auth hash-password
#   Prompt for a password and print a bcrypt hash for ADMIN_PASSWORD_HASH.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import InventoryItem, Customer
from .services import items_service
from .services.auth_service import hash_password
from .services.ledger_service import get_customer_ledger
from .services.reporting_service import low_stock_items


DEMO_ITEMS = [
    {"name": "Basmati Rice 5kg", "description": "Long grain rice", "quantity": 40, "price_cents": 1299},
    {"name": "Sunflower Oil 1L", "description": "Refined cooking oil", "quantity": 25, "price_cents": 449},
    {"name": "Black Tea 250g", "description": "Loose leaf", "quantity": 8, "price_cents": 375},
    {"name": "Wheat Flour 10kg", "description": "Whole wheat atta", "quantity": 15, "price_cents": 1850},
    {"name": "Sugar 1kg", "description": None, "quantity": 5, "price_cents": 199},
]

DEMO_CUSTOMERS = [
    {"name": "Asha Traders", "street": "12 Market Road", "city": "Pune", "state": "MH",
     "postal_code": "411001", "mobile_number": "9820012345"},
    {"name": "Lakeview Cafe", "street": "4 Lake Street", "city": "Nagpur", "state": "MH",
     "postal_code": "440001", "mobile_number": "9890054321"},
]


def _money(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{abs(cents) / 100:,.2f}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables ready.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' for demo data.")


@system_group.command('seed')
@with_appcontext
def seed():
    """Insert demo items and customers (skipped per table when it already has rows)."""
    if db.session.query(InventoryItem).count():
        click.echo("WARN Items already present, skipping items.")
    else:
        for data in DEMO_ITEMS:
            items_service.create_item(data)
        click.echo(f"PASS Seeded {len(DEMO_ITEMS)} items.")

    if db.session.query(Customer).count():
        click.echo("WARN Customers already present, skipping customers.")
    else:
        for data in DEMO_CUSTOMERS:
            db.session.add(Customer(**data))
        db.session.commit()
        click.echo(f"PASS Seeded {len(DEMO_CUSTOMERS)} customers.")


@click.group('items')
def items_group():
    """Inventory inspection commands."""


@items_group.command('list')
@with_appcontext
def list_items():
    """List all items."""
    items = items_service.list_items()
    if not items:
        click.echo("No items found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Name':<36} {'Qty':>8} {'Price':>12}")
    click.echo("="*72)
    for item in items:
        click.echo(f"{item.id:<5} {item.name[:36]:<36} {item.quantity:>8} {_money(item.price_cents):>12}")
    click.echo("="*72 + "\n")


@items_group.command('low-stock')
@with_appcontext
def list_low_stock():
    """List items below the low-stock threshold."""
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD")
    items = low_stock_items()
    if not items:
        click.echo(f"PASS No items below {threshold}.")
        return

    for item in items:
        click.echo(f"WARN {item.id:<5} {item.name:<36} qty={item.quantity}")
    click.echo(f"{len(items)} item(s) below {threshold}.")


@click.group('ledger')
def ledger_group():
    """Customer ledger commands."""


@ledger_group.command('show')
@click.argument('customer_id', type=int)
@with_appcontext
def show_ledger(customer_id):
    """Print the computed ledger for a customer."""
    ledger = get_customer_ledger(customer_id)
    if ledger.customer_name is None:
        click.echo(f"WARN Customer {customer_id} not found; ledger is empty.")
        return

    click.echo(f"\nLedger for {ledger.customer_name} (#{customer_id})")
    click.echo("="*96)
    click.echo(f"{'Date':<12} {'ID':<14} {'Type':<8} {'Description':<36} {'Amount':>11} {'Balance':>11}")
    click.echo("="*96)
    for tx in ledger.transactions:
        click.echo(
            f"{tx.date:%Y-%m-%d}   {tx.id:<14} {tx.type:<8} {tx.description[:36]:<36} "
            f"{_money(tx.amount_cents):>11} {_money(tx.balance_cents):>11}"
        )
    click.echo("="*96)
    click.echo(f"Current balance: {_money(ledger.current_balance_cents)}\n")


@click.group('auth')
def auth_group():
    """Credential helpers."""


@auth_group.command('hash-password')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password to hash')
@click.option('--rounds', type=int, default=None, help='bcrypt cost (defaults to BCRYPT_ROUNDS)')
@with_appcontext
def hash_password_cli(password, rounds):
    """Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
    click.echo(hash_password(password, rounds or current_app.config.get("BCRYPT_ROUNDS", 12)))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(auth_group)
