"""The `extpack` command-line interface."""

import importlib.metadata
from pathlib import Path

import click

from .config import default_out_file, load_config
from .exceptions import ExtPackError, VerificationError
from .packaging.orchestrator import keygen, pack
from .packaging.reader import ExtReader

try:
    __version__ = importlib.metadata.version("extpack")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

manifest_option = click.option(
    "--manifest",
    "manifest_path",
    default="pyproject.toml",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Manifest holding [tool.extpack] defaults (optional).",
)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="extpack",
    message="%(prog)s version %(version)s",
)
def cli() -> None:
    """Signed extension package tool."""
    pass


@cli.command("keygen")
@click.option(
    "-k",
    "--key",
    "key_path",
    type=click.Path(dir_okay=False),
    help="Private key file to write [default: private.pem].",
)
@click.option(
    "-f", "--force", is_flag=True, help="Override any existing files."
)
@manifest_option
def keygen_command(key_path: str | None, force: bool, manifest_path: str) -> None:
    """Generates a new RSA signing key."""
    config = load_config(manifest_path)
    final_key = Path(key_path) if key_path else config.private_key_path
    final_force = force or config.force

    try:
        keygen(final_key, force=final_force)
    except ExtPackError as e:
        click.secho(f"❌ Keygen failed: {e}", fg="red", err=True)
        raise click.Abort() from e

    click.secho(f"✅ Signing key generated in '{final_key}'.", fg="green")


@cli.command("pack")
@click.argument("src", type=click.Path())
@click.option(
    "-o", "--out", type=click.Path(dir_okay=False), help="Destination file."
)
@click.option(
    "-k",
    "--key",
    "key_path",
    type=click.Path(dir_okay=False),
    help="Private key file [default: private.pem].",
)
@click.option(
    "-f", "--force", is_flag=True, help="Override any existing files."
)
@manifest_option
def pack_command(
    src: str,
    out: str | None,
    key_path: str | None,
    force: bool,
    manifest_path: str,
) -> None:
    """Packages and signs an extension directory or zip file."""
    config = load_config(manifest_path)
    final_key = Path(key_path) if key_path else config.private_key_path
    final_out = Path(out or config.output_path or default_out_file(src))
    final_force = force or config.force

    click.echo(f"🚀 Packaging '{src}'...")
    try:
        pack(final_key, src, final_out, force=final_force)
    except ExtPackError as e:
        click.secho(f"❌ Packaging failed: {e}", fg="red", err=True)
        raise click.Abort() from e

    click.secho(f"✅ Package built successfully: {final_out}", fg="green")


@cli.command("verify")
@click.argument(
    "package_file",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
)
def verify_command(package_file: str) -> None:
    """Verifies the embedded signature of an extension package."""
    click.echo(f"🔍 Verifying package '{package_file}'...")
    try:
        reader = ExtReader(Path(package_file))
        click.echo(reader.get_info())
        reader.verify()
    except VerificationError as e:
        click.secho(f"❌ Verification failed: {e}", fg="red", err=True)
        raise click.Abort() from e

    click.secho("✅ Signature verification successful.", fg="green")


main = cli
