"""
witnessledger check: offline receipt verification

Usage:
    witnessledger check receipt.json --public-key <hex>
    witnessledger check receipt.json --public-key <hex> --format json

The receipt file holds the JSON returned by witness() (a bare receipt, or an
object with a "receipt" key as returned by verify()).

Exit codes:
    0  Receipt valid
    1  Receipt invalid (id/hash mismatch or bad signature)
    2  Error (file missing, malformed JSON)
"""

import json
import sys

import click

from witnessledger.verification.verifier import verify_receipt_dict


def _green(s: str) -> str:
    return click.style(s, fg="green") if sys.stdout.isatty() else s


def _red(s: str) -> str:
    return click.style(s, fg="red") if sys.stdout.isatty() else s


@click.command(name="check")
@click.argument("receipt_file", type=click.Path(dir_okay=False))
@click.option(
    "--public-key",
    "public_key_hex",
    required=True,
    metavar="HEX",
    help="64-char hex Ed25519 public key of the witnessing service.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
)
def check_command(receipt_file: str, public_key_hex: str, fmt: str) -> None:
    """Check RECEIPT_FILE's id and signature against a public key."""
    try:
        with open(receipt_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        click.echo(f"Error: cannot read {receipt_file}: {exc}", err=True)
        sys.exit(2)

    if isinstance(data, dict) and isinstance(data.get("receipt"), dict):
        data = data["receipt"]
    if not isinstance(data, dict):
        click.echo("Error: receipt file must contain a JSON object", err=True)
        sys.exit(2)

    result = verify_receipt_dict(data, public_key_hex)

    if fmt == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        rid = data.get("receipt_id", "?")
        if result.valid:
            click.echo(f"{_green('VALID')}    {rid}  {result.message}")
        else:
            click.echo(f"{_red('INVALID')}  {rid}  {result.message}")

    sys.exit(0 if result.valid else 1)
