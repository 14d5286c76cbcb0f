"""Command-line interface for s3aescp.

Usage:
    s3aescp [OPTIONS] SOURCE DEST

SOURCE or DEST may be an s3://bucket/key URL, in which case the file is
encrypted on upload or decrypted on download. Local-to-local copies need
-encrypt or -decrypt.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from s3aescp.core.config import DEFAULT_CONFIG_PATH, Configuration, load_config
from s3aescp.core.types import TransferError
from s3aescp.transfer.session import (
    Direction,
    TransferSession,
    resolve_direction,
    run_transfer,
)
from s3aescp.transfer.storage import create_object_store

DEFAULT_CHUNK_KIB = 5 * 1024

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool) -> None:
    """Configure the s3aescp logger to write to stderr.

    Args:
        verbose: Log every step at DEBUG level instead of warnings only.
    """
    package_logger = logging.getLogger("s3aescp")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def fail(message: str, error: BaseException | None = None) -> NoReturn:
    """Report an error and exit with status 1."""
    click.echo(f"Error: {message}", err=True)
    for note in getattr(error, "__notes__", []):
        click.echo(f"Error: {note}", err=True)
    sys.exit(1)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source")
@click.argument("dest")
@click.option(
    "-config",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Config file with the store credentials and AES key.",
)
@click.option("-verbose", "--verbose", is_flag=True, help="Verbose output.")
@click.option("-encrypt", "--encrypt", is_flag=True, help="Encrypt a file locally.")
@click.option("-decrypt", "--decrypt", is_flag=True, help="Decrypt a file locally.")
@click.option(
    "-chunk",
    "--chunk",
    "chunk_kib",
    type=click.IntRange(min=1),
    default=DEFAULT_CHUNK_KIB,
    show_default=True,
    help="Chunk size in kilobytes.",
)
@click.version_option(package_name="s3aescp")
def cli(
    source: str,
    dest: str,
    config_path: Path,
    verbose: bool,
    encrypt: bool,
    decrypt: bool,
    chunk_kib: int,
) -> None:
    """Copy SOURCE to DEST, encrypting or decrypting on the way.

    Remote paths (s3://bucket/key) are always stored encrypted.
    """
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        direction = resolve_direction(source, dest, encrypt, decrypt)
    except ValueError as e:
        fail(str(e))

    logger.debug(f"cfgName: {config_path}")
    try:
        config: Configuration = load_config(config_path)
        config.log_summary()
        key = config.key
    except TransferError as e:
        fail(str(e), e)

    session = TransferSession(
        source=source,
        dest=dest,
        key=key,
        chunk_size=chunk_kib * 1024,
        direction=direction,
        verbose=verbose,
    )

    try:
        result = run_transfer(session, store_factory=lambda: create_object_store(config))
    except (TransferError, OSError, ValueError) as e:
        fail(str(e), e)

    if result.direction is Direction.UPLOAD:
        click.echo(f"Successfully uploaded file: {result.dest} ({result.bytes_written} bytes)")
    elif result.direction is Direction.DOWNLOAD:
        click.echo(f"Successfully downloaded file: {result.dest} ({result.bytes_written} bytes)")
    else:
        logger.info(f"Finished {result.direction.value}: {result.source} -> {result.dest}")


def main() -> None:
    """Entry point for the CLI.

    Usage errors exit with status 1, like every other failure.
    """
    try:
        exit_code = cli.main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    sys.exit(exit_code if isinstance(exit_code, int) else 0)
