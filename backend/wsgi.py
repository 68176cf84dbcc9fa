"""WSGI entry point."""

import os

import click

from badboys import create_app, db
from badboys.models import ItemSource

app = create_app(os.environ.get("FLASK_ENV", "production"))

# Worker and beat: celery -A wsgi:celery worker -B
from badboys.celery_app import celery  # noqa: E402,F401

# Create tables on startup
with app.app_context():
    db.create_all()


@app.cli.command("expire-listings")
def expire_listings_command():
    """Return items of expired marketplace listings to their sellers."""
    from badboys.services.marketplace_service import MarketplaceService

    result = MarketplaceService().expire_listings()
    click.echo(f"Expired: {result['expired']}, failed: {result['failed']}")


@app.cli.command("grant-item")
@click.argument("steam_id")
@click.argument("item_id", type=int)
@click.option(
    "--source",
    type=click.Choice([s.value for s in ItemSource]),
    default=ItemSource.DROP.value,
    help="Item source recorded in history",
)
def grant_item_command(steam_id, item_id, source):
    """Give a catalog item to a player."""
    from badboys.services.inventory_service import InventoryService

    result = InventoryService().grant_item(steam_id, item_id, source)
    if result["success"]:
        click.echo(f"Granted {item_id} to {steam_id} as {result['item_key']}")
    else:
        click.echo(f"Failed: {result['message']}")


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
