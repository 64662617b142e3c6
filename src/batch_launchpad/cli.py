"""CLI entry point for batch_launchpad."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from decimal import InvalidOperation

import click
from stellar_sdk import Keypair, ServerAsync
from stellar_sdk.client.aiohttp_client import AiohttpClient

from batch_launchpad.config import load_config
from batch_launchpad.errors import LaunchpadError
from batch_launchpad.launchpad import run_launch
from batch_launchpad.models.batch import (
    BatchProgress,
    BatchRequest,
    BatchResult,
    LaunchStatus,
    TokenMetadata,
)
from batch_launchpad.stellar.gateway import HorizonChainGateway, stroops_to_xlm, xlm_to_stroops
from batch_launchpad.storage.sqlite import SQLiteResultStore


def _xlm(stroops: int) -> str:
    return f"{stroops_to_xlm(stroops)} XLM"


def _require_secret(cfg):
    """Exit with error if no funding secret is configured."""
    if not cfg.funding_secret:
        click.echo("Error: No funding secret configured.", err=True)
        click.echo("Set BATCH_LAUNCHPAD_SECRET env var or funding_secret in config.", err=True)
        sys.exit(1)


def _apply_log_level(ctx: click.Context, cfg) -> None:
    """Config log_level applies unless -v already asked for DEBUG."""
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())


def _print_result(result: BatchResult) -> None:
    m = result.metadata
    click.echo(f"Batch {result.request_id}")
    click.echo(f"  Token:      {m.name} ({m.symbol})")
    click.echo(f"  Created:    {result.created_at}")
    click.echo(f"  Funded by:  {result.funding_account}")
    click.echo(f"  Funding tx: {result.funding_tx_hash or '-'}")
    click.echo(f"  Interval:   {result.inter_wallet_delay_ms}ms")
    click.echo(f"  Launched:   {len(result.succeeded)}/{len(result.wallets)}"
               f"{' (cancelled)' if result.cancelled else ''}")
    for w in result.wallets:
        if w.outcome.status is LaunchStatus.SUCCEEDED:
            detail = w.outcome.external_url
        else:
            detail = f"{w.outcome.reason} (attempts={w.outcome.attempts})"
        balance = _xlm(w.confirmed_balance) if w.confirmed_balance is not None else "?"
        click.echo(f"  [{w.outcome.status.value:9s}] {w.name:10s} {w.spend.public_key} "
                   f"balance={balance} {detail}")


def _print_summary_line(result: BatchResult) -> None:
    click.echo(f"  {result.request_id}  {result.metadata.name} ({result.metadata.symbol})  "
               f"{len(result.succeeded)}/{len(result.wallets)} launched  at={result.created_at}")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """batch_launchpad - fund a batch of fresh wallets and launch a token from each."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Launch ─────────────────────────────────────────────


@cli.command()
@click.option("-n", "--count", type=int, required=True, help="Number of wallets to generate")
@click.option("--name", required=True, help="Token name")
@click.option("--symbol", required=True, help="Token symbol")
@click.option("--description", default="", help="Token description")
@click.option("--image-ref", default=None, help="Content-addressed image reference")
@click.option("--twitter", default=None, help="Twitter link")
@click.option("--website", default=None, help="Website link")
@click.option("--telegram", default=None, help="Telegram link")
@click.option("--amount", default=None, help="XLM to fund each wallet with")
@click.option("--delay-ms", type=int, default=None, help="Delay between wallet launches (ms)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def launch(
    ctx: click.Context,
    count: int,
    name: str,
    symbol: str,
    description: str,
    image_ref: str | None,
    twitter: str | None,
    website: str | None,
    telegram: str | None,
    amount: str | None,
    delay_ms: int | None,
    yes: bool,
) -> None:
    """Generate, fund and launch a batch of wallets."""
    cfg = load_config(ctx.obj["config_path"])
    _require_secret(cfg)
    _apply_log_level(ctx, cfg)

    amount_per_wallet = cfg.amount_per_wallet
    if amount is not None:
        try:
            amount_per_wallet = xlm_to_stroops(amount)
        except InvalidOperation:
            click.echo(f"Error: invalid amount {amount!r}", err=True)
            sys.exit(1)
    if delay_ms is None:
        delay_ms = cfg.inter_wallet_delay_floor_ms
    elif delay_ms < cfg.inter_wallet_delay_floor_ms:
        click.echo(f"Delay raised to the {cfg.inter_wallet_delay_floor_ms}ms minimum.")

    request = BatchRequest(
        requested_count=count,
        amount_per_wallet=amount_per_wallet,
        inter_wallet_delay_ms=delay_ms,
        metadata=TokenMetadata(
            name=name,
            symbol=symbol,
            description=description,
            image_ref=image_ref,
            twitter=twitter,
            website=website,
            telegram=telegram,
        ),
        funding_account=Keypair.from_secret(cfg.funding_secret).public_key,
    )

    click.echo(f"Launching {name} ({symbol}) on {cfg.network}")
    click.echo(f"  Wallets:    {count}")
    click.echo(f"  Per wallet: {_xlm(amount_per_wallet)}")
    click.echo(f"  Total:      {_xlm(request.total_funding)}")
    click.echo(f"  Funded by:  {request.funding_account}")

    if not yes:
        click.confirm("\nProceed?", abort=True)

    def _progress(p: BatchProgress) -> None:
        click.echo(f"Progress: {p.current} / {p.total} - {p.status}")

    outcome = asyncio.run(run_launch(cfg, request, _progress))

    if outcome.aborted:
        click.echo(f"\nBatch aborted: {outcome.reason}", err=True)
        sys.exit(1)

    click.echo("")
    _print_result(outcome.result)

    if outcome.error is not None:
        # Funded but unsaved: the keys exist nowhere else.
        click.echo(f"\nWarning: {outcome.reason}", err=True)
        click.echo("Wallet keys were not stored. Keep this document:", err=True)
        click.echo(json.dumps(outcome.result.to_document(include_secrets=True), indent=2))
        sys.exit(1)


# ── Store reads ────────────────────────────────────────


@cli.command()
@click.argument("batch_id")
@click.pass_context
def show(ctx: click.Context, batch_id: str) -> None:
    """Show one stored batch."""
    cfg = load_config(ctx.obj["config_path"])

    async def _show():
        store = SQLiteResultStore(cfg.db_path)
        await store.initialize()
        try:
            result = await store.find_by_id(batch_id)
            if result is None:
                click.echo(f"No batch {batch_id}", err=True)
                sys.exit(1)
            _print_result(result)
        finally:
            await store.close()

    asyncio.run(_show())


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Search stored batches by token name or symbol."""
    cfg = load_config(ctx.obj["config_path"])

    async def _search():
        store = SQLiteResultStore(cfg.db_path)
        await store.initialize()
        try:
            results = await store.search(query)
            if not results:
                click.echo("No matching batches.")
                return
            for r in results:
                _print_summary_line(r)
        finally:
            await store.close()

    asyncio.run(_search())


@cli.command("list")
@click.option("-n", "--limit", type=int, default=20, help="Number of recent batches to show")
@click.pass_context
def list_batches(ctx: click.Context, limit: int) -> None:
    """List recent batches."""
    cfg = load_config(ctx.obj["config_path"])

    async def _list():
        store = SQLiteResultStore(cfg.db_path)
        await store.initialize()
        try:
            results = await store.list_recent(limit)
            if not results:
                click.echo("No batches recorded.")
                return
            for r in results:
                _print_summary_line(r)
        finally:
            await store.close()

    asyncio.run(_list())


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.argument("address", required=False)
@click.pass_context
def balance(ctx: click.Context, address: str | None) -> None:
    """Show the funding account's (or ADDRESS's) balance."""
    cfg = load_config(ctx.obj["config_path"])
    if address is None:
        _require_secret(cfg)
        address = Keypair.from_secret(cfg.funding_secret).public_key

    async def _balance():
        gateway = HorizonChainGateway(
            ServerAsync(horizon_url=cfg.horizon_url, client=AiohttpClient()), cfg.gateway,
        )
        try:
            stroops = await gateway.get_balance(address)
            click.echo(f"Address:    {address}")
            click.echo(f"Balance:    {stroops} stroops ({_xlm(stroops)})")
        except LaunchpadError as exc:
            click.echo(f"Balance query failed: {exc.reason}", err=True)
            sys.exit(1)
        finally:
            await gateway.close()

    asyncio.run(_balance())


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show effective configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Network:       {cfg.network}")
    click.echo(f"Horizon:       {cfg.horizon_url}")
    click.echo(f"Launch API:    {cfg.launch.api_url}")
    click.echo(f"Per wallet:    {_xlm(cfg.amount_per_wallet)}")
    click.echo(f"Delay floor:   {cfg.inter_wallet_delay_floor_ms}ms")
    click.echo(f"Settle delay:  {max(cfg.settle_delay, cfg.settle_delay_floor)}s")
    click.echo(f"Launch tries:  {cfg.launch.retries} x {cfg.launch.timeout}s")
    click.echo(f"DB path:       {cfg.db_path}")
    click.echo(f"Secret:        {'***configured***' if cfg.funding_secret else '(not set)'}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
