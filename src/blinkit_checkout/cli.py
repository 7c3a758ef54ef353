"""Command-line interface for Blinkit Checkout."""

from __future__ import annotations

import asyncio

import typer
from redis.asyncio import Redis
from rich.console import Console
from rich.table import Table

from blinkit_checkout import __version__
from blinkit_checkout.models.cart import CartSummary, Product
from blinkit_checkout.utils.config import get_settings
from blinkit_checkout.utils.logging import mask_phone, setup_logging


app = typer.Typer(
    name="blinkit-checkout",
    help="Session-bound Blinkit login, OTP and cart automation",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def run_async(coro):
    """Run async coroutine in sync context."""
    return asyncio.run(coro)


def parse_product(value: str) -> Product:
    """
    Parse a ``URL=VARIANT`` option value.

    The last ``=`` separates the variant, so product URLs with query
    strings still parse.

    Raises:
        typer.BadParameter: If either part is missing or the URL is not http(s).
    """
    url, sep, variant = value.rpartition("=")
    url, variant = url.strip(), variant.strip()
    if not sep or not url or not variant:
        raise typer.BadParameter(f"Expected URL=VARIANT, got '{value}'")
    if not url.startswith(("http://", "https://")):
        raise typer.BadParameter(f"Product URL must be http(s): '{url}'")
    return Product(url=url, variant=variant)


def display_cart(cart: CartSummary) -> None:
    """Display cart lines and the page-reported total in a table."""
    table = Table(title=f"Cart Items: {len(cart.items)}")
    table.add_column("Name", style="white", max_width=50)
    table.add_column("Qty", style="yellow", justify="right")
    table.add_column("Price", style="green", justify="right")

    for item in cart.items:
        table.add_row(item.name, str(item.quantity), f"₹{item.price:,.2f}")

    console.print(table)
    console.print(f"[bold]Total:[/bold] [green]₹{cart.total_price:,.2f}[/green]")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold blue]blinkit-checkout[/bold blue] v{__version__}")


@app.command()
def checkout(
    phone: str = typer.Option(..., "--phone", "-p", help="10-digit mobile number"),
    products: list[str] = typer.Option(
        ...,
        "--product",
        help="Product to add as URL=VARIANT (repeatable)",
    ),
    headless: bool = typer.Option(
        False, "--headless/--no-headless", help="Run headless"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Log in with an OTP and populate the cart."""
    items = [parse_product(p) for p in products]

    async def _checkout():
        setup_logging(level="DEBUG" if verbose else "INFO")

        from blinkit_checkout.services.orchestrator import CheckoutOrchestrator

        settings = get_settings()
        settings.browser.headless = headless
        redis = Redis.from_url(settings.cache.redis_url, decode_responses=True)

        durable = None
        if settings.database.enabled:
            from blinkit_checkout.storage import SessionRepository, init_db

            await init_db(settings.database.url)
            durable = SessionRepository()

        orchestrator = CheckoutOrchestrator.from_settings(
            settings, redis=redis, durable=durable
        )
        try:
            console.print(f"[bold]Requesting OTP for:[/bold] {mask_phone(phone)}\n")
            login = await orchestrator.request_login(phone)
            if not login.ok or login.value is None:
                console.print(f"[red]✗ Login failed:[/red] {login.message}")
                raise typer.Exit(code=1)
            session_id = login.value
            console.print(f"[dim]Session: {session_id}[/dim]")

            code = typer.prompt("Enter the OTP")
            verified = await orchestrator.verify_code(session_id, code.strip())
            if not verified.ok:
                console.print(f"[red]✗ Verification failed:[/red] {verified.message}")
                raise typer.Exit(code=1)
            console.print("[green]✓ OTP verified[/green]\n")

            console.print(f"[bold]Adding {len(items)} product(s)[/bold]")
            cart = await orchestrator.populate_cart(session_id, items)
            if not cart.ok or cart.value is None:
                console.print(f"[red]✗ Cart failed:[/red] {cart.message}")
                raise typer.Exit(code=1)
            display_cart(cart.value)
        finally:
            await orchestrator.shutdown()
            await redis.aclose()
            if durable is not None:
                from blinkit_checkout.storage import close_db

                await close_db()

    run_async(_checkout())


if __name__ == "__main__":
    app()
