"""CLI interface for simple-bundler."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from simple_bundler import __version__
from simple_bundler.config import load_settings
from simple_bundler.database.engine import get_session, init_db
from simple_bundler.database.repository import BundleRepository
from simple_bundler.matching.cart_transform import run_cart_transform_payload
from simple_bundler.matching.variant_mapper import MappingError, map_variants
from simple_bundler.models.pydantic_models import SyncResult, Variant
from simple_bundler.services.bundle_service import (
    BundleNotFoundError,
    BundleService,
    BundleValidationError,
)
from simple_bundler.shopify.admin_client import AdminClient, PlatformError
from simple_bundler.shopify.catalog import ShopifyCatalog

app = typer.Typer(
    name="simple-bundler",
    help="Two-product bundles for Shopify: variant mapping and cart expansion",
    add_completion=False,
)
console = Console()


def output_json(data: Any) -> None:
    """Output JSON to stdout (for programmatic consumption)."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"simple-bundler version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable debug logging.",
    ),
) -> None:
    """Two-product bundles for Shopify stores."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init_database(
    db_path: Path | None = typer.Option(
        None,
        "--db",
        "-d",
        help="Path to SQLite database file.",
    ),
) -> None:
    """Initialize the database, creating all tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")

    try:
        init_db(db_path)
        db_location = db_path or "data/simple_bundler.db"
        console.print(f"[green]Database initialized at: {db_location}[/green]")
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1) from e


@app.command(name="list-bundles")
def list_bundles(
    shop: str | None = typer.Option(
        None,
        "--shop",
        "-s",
        help="Shop domain (defaults to the configured shop).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON (for programmatic consumption).",
    ),
) -> None:
    """List stored bundles of a shop."""
    shop = shop or load_settings().shop_domain
    init_db()

    with get_session() as session:
        bundles = BundleRepository(session).get_bundles(shop)

        if json_output:
            output_json({
                "shop": shop,
                "bundles": [
                    {
                        "id": b.id,
                        "title": b.title,
                        "handle": b.handle,
                        "parent_product_id": b.parent_product_id,
                        "component_product_ids": b.component_product_ids,
                        "status": b.status,
                        "health": b.health,
                        "issues_count": b.issues_count,
                        "last_validated_at": (
                            b.last_validated_at.isoformat() if b.last_validated_at else None
                        ),
                    }
                    for b in bundles
                ],
                "count": len(bundles),
            })
            return

        if not bundles:
            console.print("[yellow]No bundles found.[/yellow]")
            return

        table = Table(title=f"Bundles of {shop} ({len(bundles)})")
        table.add_column("ID", style="cyan")
        table.add_column("Title", style="white", max_width=40)
        table.add_column("Handle", style="dim")
        table.add_column("Status", style="blue")
        table.add_column("Health", justify="center")
        table.add_column("Issues", style="yellow", justify="right")

        for b in bundles:
            health = "[green]ok[/green]" if b.health == "ok" else f"[red]{b.health}[/red]"
            table.add_row(
                b.id,
                b.title[:40] if b.title else "-",
                b.handle,
                b.status,
                health,
                str(b.issues_count),
            )

        console.print(table)


async def run_sync(shop: str, bundle_id: str) -> SyncResult:
    """Sync one bundle's mapping against the configured shop."""
    settings = load_settings()
    async with AdminClient(settings) as client:
        with get_session() as session:
            service = BundleService(session, ShopifyCatalog(client))
            return await service.sync_bundle(shop, bundle_id)


@app.command()
def sync(
    bundle_id: str = typer.Argument(..., help="Bundle ID to re-map."),
    shop: str | None = typer.Option(
        None,
        "--shop",
        "-s",
        help="Shop domain (defaults to the configured shop).",
    ),
) -> None:
    """Recompute a bundle's variant mapping and write it to the shop."""
    shop = shop or load_settings().shop_domain
    init_db()

    try:
        result = asyncio.run(run_sync(shop, bundle_id))
    except BundleNotFoundError:
        console.print(f"[red]Bundle {bundle_id} not found.[/red]")
        raise typer.Exit(1) from None
    except (BundleValidationError, MappingError, PlatformError) as e:
        console.print(f"[red]Sync failed: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"[green]Mapped {result.mapped_count} variant(s) of {result.bundle_product_id}[/green]"
    )


def _read_json(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    with open(source, "r", encoding="utf-8") as f:
        return json.load(f)


@app.command(name="cart-transform")
def cart_transform(
    source: str = typer.Argument(..., help="Cart input JSON file, or '-' for stdin."),
) -> None:
    """Run the cart expansion on a cart input document and print the operations."""
    try:
        payload = _read_json(source)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read cart input: {e}[/red]")
        raise typer.Exit(1) from e

    output_json(run_cart_transform_payload(payload).to_payload())


@app.command(name="map-variants")
def map_variants_command(
    source: Path = typer.Argument(
        ...,
        help="JSON file with 'bundle', 'component_a' and 'component_b' variant lists.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON (for programmatic consumption).",
    ),
) -> None:
    """Dry-run the variant mapper on local data without touching the shop."""
    try:
        data = _read_json(str(source))
        variants = {
            key: [Variant.model_validate(v) for v in data.get(key) or []]
            for key in ("bundle", "component_a", "component_b")
        }
    except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
        console.print(f"[red]Could not read variants: {e}[/red]")
        raise typer.Exit(1) from e

    try:
        mappings = map_variants(
            variants["bundle"], variants["component_a"], variants["component_b"]
        )
    except MappingError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    if json_output:
        output_json([m.model_dump(mode="json") for m in mappings])
        return

    table = Table(title=f"Variant mapping ({len(mappings)})")
    table.add_column("Bundle variant", style="cyan")
    table.add_column("Component A", style="green")
    table.add_column("Component B", style="green")
    for mapping in mappings:
        table.add_row(mapping.bundle_variant_id, *mapping.component_variant_ids)
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "simple_bundler.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="debug" if reload else "info",
    )


if __name__ == "__main__":
    app()
