"""
LoyaltySDK CLI

Command-line interface over the LoyaltySDK for one LoyaltyToken contract.

Commands:
  whoami              - Show the signing account address
  info                - Show resolved configuration and token metadata
  balance             - Token balance of an account
  allowance           - Remaining allowance of a spender
  owner               - Current contract owner
  transfer            - Send tokens
  approve             - Set a spender allowance
  increase-allowance  - Raise a spender allowance
  decrease-allowance  - Lower a spender allowance
  transfer-from       - Move tokens using an allowance
  transfer-ownership  - Hand the contract to a new owner
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from .errors import LoyaltySDKError
from .identity.eth import get_address, load_private_key


# ============ Constants ============

VERSION = "0.1.0"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="loyalty")
@click.option("--rpc-url", default=None, help="JSON-RPC endpoint URL")
@click.option("--token", "token_address", default=None, help="LoyaltyToken contract address")
@click.option("--chain-id", type=int, default=None, help="Chain id (default: ask the node)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    rpc_url: Optional[str],
    token_address: Optional[str],
    chain_id: Optional[int],
    verbose: bool,
) -> None:
    """LoyaltySDK - interact with a LoyaltyToken contract."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FORMAT)

    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "rpc_url": rpc_url,
        "contract_address": token_address,
        "chain_id": chain_id,
    }


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show the signing account address."""
    try:
        click.echo(f"Address: {get_address(load_private_key())}")
    except LoyaltySDKError:
        click.echo("No wallet found.")
        click.echo("Set PRIVATE_KEY in the environment or in ~/.loyalty/.env.")
        sys.exit(1)


# ============ Token Commands ============

from .commands.token import (  # noqa: E402
    allowance,
    approve,
    balance,
    decrease_allowance,
    increase_allowance,
    info,
    owner,
    transfer,
    transfer_from,
    transfer_ownership,
)

cli.add_command(info)
cli.add_command(balance)
cli.add_command(allowance)
cli.add_command(owner)
cli.add_command(transfer)
cli.add_command(approve)
cli.add_command(increase_allowance)
cli.add_command(decrease_allowance)
cli.add_command(transfer_from)
cli.add_command(transfer_ownership)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
