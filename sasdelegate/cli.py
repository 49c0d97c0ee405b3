"""Command line interface for issuing delegated upload URLs."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from sasdelegate import SasSigner, get_transport, load_config, run_pipeline
from sasdelegate.auth.token import TokenAcquirer
from sasdelegate.contracts import PipelineResult
from sasdelegate.errors import (
    ConfigurationError,
    DelegationKeyError,
    SasDelegateError,
    TokenAcquisitionError,
)
from sasdelegate.utils.retry import retry_call

app = typer.Typer(help="Issue user delegation SAS URLs for blob uploads")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for diagnostics"),
) -> None:
    """sasdelegate CLI entry point."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command("sign")
def sign(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    count: int = typer.Option(1, min=1, help="Number of objects to mint URLs for"),
    blob_host: Optional[str] = typer.Option(None, help="Override the blob host in URLs"),
    retries: int = typer.Option(1, min=1, help="Attempts for the network stages"),
) -> None:
    """
    Mint delegated upload URLs.

    Acquires a bearer token, fetches a delegation key and signs one URL per
    object with that key. Each line printed is the object id and its URL,
    tab-separated.

    Example:
        sasdelegate sign --config sas.yaml --count 3
    """
    config = load_config(config_path)
    try:
        config.storage.require_credentials()
    except ConfigurationError as exc:
        _fail(str(exc))

    transport = get_transport(config=config)
    signer = SasSigner(config.storage)

    def attempt() -> PipelineResult:
        result = run_pipeline(config.storage, transport, signer=signer, blob_host=blob_host)
        if not result.ok and result.stage != "signing":
            raise result.error
        return result

    try:
        result = retry_call(
            attempt,
            attempts=retries,
            retry_on=(TokenAcquisitionError, DelegationKeyError),
        )
        signed = [result.unwrap()]
        for _ in range(count - 1):
            signed.append(signer.sign(result.key, blob_host=blob_host))
    except SasDelegateError as exc:
        _fail(f"{type(exc).__name__}: {exc}")
    finally:
        transport.close()

    for item in signed:
        typer.echo(f"{item.object_id}\t{item.url}")


@app.command("token")
def token(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
) -> None:
    """Check the service principal credentials by acquiring a token."""
    config = load_config(config_path)
    try:
        config.storage.require_credentials()
    except ConfigurationError as exc:
        _fail(str(exc))

    transport = get_transport(config=config)
    try:
        bearer = TokenAcquirer(config.storage, transport).acquire()
    except SasDelegateError as exc:
        _fail(f"{type(exc).__name__}: {exc}")
    finally:
        transport.close()

    typer.echo(f"Acquired {bearer.token_type} token (expires_in={bearer.expires_in})")


if __name__ == "__main__":
    app()
