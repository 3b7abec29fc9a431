# Overview: Flask CLI command groups for bootstrap and stock inspection.

# backend/estoque/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent; existing data is kept).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stock inspection:
# - python -m flask stock balance X-500
#   Print the current balance of one product.
# - python -m flask stock low [--threshold 5]
#   List products whose balance is at or below the threshold.
#
# Schema migrations (Flask-Migrate):
# - python -m flask db init / migrate / upgrade

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import inventory_service
from .services.products_service import get_product


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables ready: products, inflows, outflows")


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

    click.echo("PASS Database reset complete.")


@click.group('stock')
def stock_group():
    """Stock balance inspection commands."""


@stock_group.command('balance')
@click.argument('factory_code')
@with_appcontext
def show_balance(factory_code):
    """Print the balance of one product."""
    product = get_product(factory_code)
    summary = inventory_service.get_balance_summary(factory_code)
    unit = ""
    if product is None:
        click.echo(f"WARN {summary['factoryCode']} is not registered")
    else:
        click.echo(f"{product.factory_code}  {product.description}")
        if product.unit_of_measure:
            unit = f" {product.unit_of_measure}"
    click.echo(f"Balance: {summary['balance']}{unit}")


@stock_group.command('low')
@click.option('--threshold', type=int, default=None, help='Override LOW_STOCK_THRESHOLD')
@with_appcontext
def low_stock(threshold):
    """List products at or below the low-stock threshold."""
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]

    rows = [r for r in inventory_service.list_balances(low_stock_threshold=threshold) if r["lowStock"]]
    if not rows:
        click.echo(f"PASS No products at or below {threshold}")
        return

    click.echo(f"{'FACTORY CODE':<20} {'BALANCE':>8}  DESCRIPTION")
    click.echo("-" * 60)
    for r in rows:
        click.echo(f"{r['factoryCode']:<20} {r['balance']:>8}  {r['description']}")
    click.echo(f"\nTotal: {len(rows)} product(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
