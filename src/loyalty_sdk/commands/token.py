"""
Token commands - LoyaltyToken reads and transactions from the CLI.

Each command resolves configuration (flags > environment > ~/.loyalty/.env),
builds a LoyaltySDK, runs one operation and closes the client.

Examples:
  loyalty balance
  loyalty --token 0xAbC... balance 0xDeF...
  loyalty transfer --to 0x... --amount 100
  loyalty approve --spender 0x... --amount 100
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Awaitable, Callable, NoReturn, Optional

import click

from ..config import SDKConfig, load_config
from ..errors import LoyaltySDKError
from ..sdk import LoyaltySDK


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fail(exc: LoyaltySDKError) -> NoReturn:
    click.secho(f"ERROR: {exc}", fg="red")
    sys.exit(exc.exit_code)


def _resolve_config(ctx: click.Context) -> SDKConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    try:
        return load_config(**overrides)
    except LoyaltySDKError as exc:
        _fail(exc)


def _run(ctx: click.Context, operation: Callable[[LoyaltySDK], Awaitable[Any]]) -> Any:
    """Run one SDK operation to completion, mapping SDK errors to exit codes."""
    config = _resolve_config(ctx)

    async def runner() -> Any:
        async with LoyaltySDK.from_config(config) as sdk:
            return await operation(sdk)

    try:
        return asyncio.run(runner())
    except LoyaltySDKError as exc:
        _fail(exc)


def _confirmed(label: str) -> None:
    click.secho(f"SUCCESS: {label} confirmed", fg="green")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@click.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show configuration and token metadata."""
    config = _resolve_config(ctx)

    async def read(sdk: LoyaltySDK) -> tuple[str, str, int, str, str]:
        return (
            await sdk.name(),
            await sdk.symbol(),
            await sdk.decimals(),
            await sdk.total_supply(),
            await sdk.owner(),
        )

    name, symbol, decimals, supply, owner_address = _run(ctx, read)

    click.echo("=== LoyaltyToken ===")
    click.echo()
    click.echo(click.style("  RPC:          ", dim=True) + config.rpc_url)
    click.echo(click.style("  Token:        ", dim=True) + str(config.contract_address))
    click.echo(click.style("  Name:         ", dim=True) + name)
    click.echo(click.style("  Symbol:       ", dim=True) + symbol)
    click.echo(click.style("  Decimals:     ", dim=True) + str(decimals))
    click.echo(click.style("  Total supply: ", dim=True) + supply)
    click.echo(click.style("  Owner:        ", dim=True) + owner_address)


@click.command()
@click.argument("account", required=False)
@click.pass_context
def balance(ctx: click.Context, account: Optional[str]) -> None:
    """Show the token balance of ACCOUNT (default: the signing account)."""

    async def read(sdk: LoyaltySDK) -> tuple[str, str]:
        target = account or sdk.address
        return target, await sdk.get_balance(target)

    target, amount = _run(ctx, read)
    click.echo(f"{target}: {amount}")


@click.command()
@click.argument("owner_address", metavar="OWNER")
@click.argument("spender")
@click.pass_context
def allowance(ctx: click.Context, owner_address: str, spender: str) -> None:
    """Show how much SPENDER may still move on behalf of OWNER."""
    click.echo(_run(ctx, lambda sdk: sdk.allowance(owner_address, spender)))


@click.command()
@click.pass_context
def owner(ctx: click.Context) -> None:
    """Show the current contract owner."""
    click.echo(_run(ctx, lambda sdk: sdk.owner()))


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@click.command()
@click.option("--to", "recipient", required=True, help="Recipient address (0x...)")
@click.option("--amount", required=True, help="Amount in the token's smallest unit")
@click.pass_context
def transfer(ctx: click.Context, recipient: str, amount: str) -> None:
    """Transfer tokens from the signing account."""
    _run(ctx, lambda sdk: sdk.transfer(recipient, amount))
    _confirmed(f"transfer of {amount} to {recipient}")


@click.command()
@click.option("--spender", required=True, help="Spender address (0x...)")
@click.option("--amount", required=True, help="Allowance in the token's smallest unit")
@click.pass_context
def approve(ctx: click.Context, spender: str, amount: str) -> None:
    """Set the allowance of a spender."""
    _run(ctx, lambda sdk: sdk.approve(spender, amount))
    _confirmed(f"approval of {amount} for {spender}")


@click.command("increase-allowance")
@click.option("--spender", required=True, help="Spender address (0x...)")
@click.option("--amount", required=True, help="Amount to add")
@click.pass_context
def increase_allowance(ctx: click.Context, spender: str, amount: str) -> None:
    """Raise the allowance of a spender."""
    _run(ctx, lambda sdk: sdk.increase_allowance(spender, amount))
    _confirmed(f"allowance increase of {amount} for {spender}")


@click.command("decrease-allowance")
@click.option("--spender", required=True, help="Spender address (0x...)")
@click.option("--amount", required=True, help="Amount to subtract")
@click.pass_context
def decrease_allowance(ctx: click.Context, spender: str, amount: str) -> None:
    """Lower the allowance of a spender."""
    _run(ctx, lambda sdk: sdk.decrease_allowance(spender, amount))
    _confirmed(f"allowance decrease of {amount} for {spender}")


@click.command("transfer-from")
@click.option("--from", "sender", required=True, help="Token owner address (0x...)")
@click.option("--to", "recipient", required=True, help="Recipient address (0x...)")
@click.option("--amount", required=True, help="Amount in the token's smallest unit")
@click.pass_context
def transfer_from(ctx: click.Context, sender: str, recipient: str, amount: str) -> None:
    """Move tokens from an owner using the signing account's allowance."""
    _run(ctx, lambda sdk: sdk.transfer_from(sender, recipient, amount))
    _confirmed(f"transfer of {amount} from {sender} to {recipient}")


@click.command("transfer-ownership")
@click.option("--new-owner", required=True, help="New owner address (0x...)")
@click.pass_context
def transfer_ownership(ctx: click.Context, new_owner: str) -> None:
    """Transfer contract ownership (owner only)."""
    _run(ctx, lambda sdk: sdk.transfer_ownership(new_owner))
    _confirmed(f"ownership transfer to {new_owner}")
