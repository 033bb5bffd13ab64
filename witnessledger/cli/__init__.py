"""
witnessledger/cli/__init__.py

witnessledger CLI: root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    witnessledger = "witnessledger.cli:cli"
"""

import click

from witnessledger.cli.check import check_command
from witnessledger.cli.demo import demo_command
from witnessledger.cli.keys import keygen_command, pubkey_command
from witnessledger.logging_setup import configure_logging


@click.group()
@click.version_option(package_name="witnessledger")
@click.option(
    "--log-level",
    envvar="WITNESSLEDGER_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for witnessledger loggers.",
)
def cli(log_level: str) -> None:
    """
    witnessledger: signed decision receipts.

    \b
    Commands:
      keygen    Generate an Ed25519 signing key (PEM).
      pubkey    Print the public key of a PEM key.
      check     Check an exported receipt against a public key.
      demo      Witness, settle and verify against an in-process ledger.

    \b
    Quick start:
      witnessledger keygen keys/signing.pem
      witnessledger check receipt.json --public-key <hex>
    """
    configure_logging(log_level)


cli.add_command(keygen_command)
cli.add_command(pubkey_command)
cli.add_command(check_command)
cli.add_command(demo_command)
