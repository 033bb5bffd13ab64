"""
witnessledger keygen / pubkey

The same PEM format serves both the receipt signing key
(signing_key_path) and the ledger owner credential (credential_path).
"""

from pathlib import Path

import click

from witnessledger.core.crypto import Ed25519KeyManager


@click.command(name="keygen")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing key file.")
def keygen_command(path: str, force: bool) -> None:
    """Generate an Ed25519 private key at PATH and print its public key hex."""
    key_path = Path(path)
    if key_path.exists() and not force:
        raise click.ClickException(f"{key_path} already exists (use --force to overwrite)")
    key = Ed25519KeyManager.generate()
    try:
        key.save(key_path)
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(key.public_key_hex)


@click.command(name="pubkey")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pem", is_flag=True, default=False, help="Print PEM instead of hex.")
def pubkey_command(path: str, pem: bool) -> None:
    """Print the public key of the Ed25519 private key at PATH."""
    try:
        key = Ed25519KeyManager.from_file(Path(path))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(key.public_key_pem().rstrip() if pem else key.public_key_hex)
