"""Typer CLI for Playbook Paywall."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="paywall", help="Playbook Paywall: catalog, entitlements and fulfillment")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Playbook Paywall API server."""
    import uvicorn
    from playbook_paywall.app import create_app

    console.print(f"[bold green]Starting Playbook Paywall on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def products():
    """List the product catalog with configured Stripe prices."""
    from playbook_paywall.catalog.products import PRODUCTS, format_price
    from playbook_paywall.common.config import get_settings

    settings = get_settings()
    table = Table(title="Products")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Entitlements")
    table.add_column("Prices")
    for product in PRODUCTS.values():
        prices = []
        for cur, amount in product.amounts.items():
            configured = settings.price_handles.get((product.id.value, cur.value))
            marker = "" if configured else " [red](no price id)[/red]"
            prices.append(f"{format_price(amount, cur.value)}{marker}")
        table.add_row(
            product.id.value,
            product.name,
            ", ".join(sorted(product.entitlements)),
            " / ".join(prices),
        )
    console.print(table)


async def _grant(user_id: str, product_id: str, email: Optional[str]) -> frozenset[str]:
    from playbook_paywall.deps import get_db, get_fulfillment_service
    from playbook_paywall.identity.provider import AuthenticatedUser

    db = get_db()
    await db.init()
    await db.create_all()
    try:
        async with db.get_session() as session:
            return await get_fulfillment_service().debug_grant(
                session, AuthenticatedUser(user_id=user_id, email=email), product_id,
            )
    finally:
        await db.close()


@app.command()
def grant(
    user_id: str = typer.Argument(..., help="Identity-provider user id"),
    product_id: str = typer.Argument("ios_playbook", help="Product to grant"),
    email: Optional[str] = typer.Option(None, help="Email to store on a new profile"),
):
    """Grant a product's entitlements without payment (test mode, non-production only)."""
    from playbook_paywall.common.exceptions import PaywallError

    try:
        entitlements = asyncio.run(_grant(user_id, product_id, email))
    except PaywallError as e:
        console.print(f"[bold red]{e.code}[/bold red]: {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]GRANTED[/bold green] {', '.join(sorted(entitlements))}")


async def _read_entitlements(user_id: str) -> Optional[frozenset[str]]:
    from playbook_paywall.deps import get_db, get_profile_store

    db = get_db()
    await db.init()
    await db.create_all()
    try:
        async with db.get_session() as session:
            profile = await get_profile_store().read(session, user_id)
    finally:
        await db.close()
    return profile.entitlements if profile else None


@app.command()
def access(
    user_id: str = typer.Argument(..., help="Identity-provider user id"),
    host: Optional[str] = typer.Option(None, help="Request host, e.g. android.example.com"),
    path: Optional[str] = typer.Option(None, help="Request path, e.g. /android/testing"),
):
    """Show what a user can unlock on a given site/page."""
    from playbook_paywall.entitlements.resolver import evaluate_access, resolve_platform_context

    entitlements = asyncio.run(_read_entitlements(user_id))
    if entitlements is None:
        console.print(f"[yellow]No profile for {user_id}[/yellow]")
        entitlements = frozenset()

    platform = resolve_platform_context(host, path)
    decision = evaluate_access(entitlements, platform)
    status = "[bold green]PRO[/bold green]" if decision.is_pro else "[bold red]LOCKED[/bold red]"
    console.print(f"{status} on {platform.value}")
    console.print(f"  Entitlements: {', '.join(sorted(entitlements)) or '(none)'}")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Playbook Paywall server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
