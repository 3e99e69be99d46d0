"""Command-line interface for AuthGate.

This module provides the CLI commands for running and managing
the AuthGate authorization server.
"""

from typing import NoReturn

import click

from authgate.core.config import get_settings
from authgate.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="AuthGate")
def cli() -> None:
    """AuthGate - OAuth 2.0 authorization server with email-code sign-in."""


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the AuthGate server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting AuthGate server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "authgate.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Create all tables and seed the configured OAuth clients.

    Use this only in development.
    """
    import asyncio

    from authgate.infrastructure.persistence.database import (
        get_db_manager,
        init_database,
    )

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo("ERROR: Running in production mode. Refusing to create tables.", err=True)
        raise SystemExit(1)

    if not force:
        click.confirm("This will create all database tables. Continue?", abort=True, default=False)

    async def initialize():
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await get_db_manager().disconnect()

    asyncio.run(initialize())


@cli.command()
@click.option("--name", type=str, required=True, help="Display name of the client")
@click.option(
    "--redirect-uri",
    "redirect_uris",
    type=str,
    multiple=True,
    required=True,
    help="Allowed redirect URI (repeatable)",
)
@click.option("--origin", type=str, required=True, help="Browser origin allowed for CORS")
@click.option(
    "--scope",
    "scopes",
    type=str,
    multiple=True,
    help="Granted scope (repeatable, defaults to openid profile email)",
)
def register_client(
    name: str,
    redirect_uris: tuple[str, ...],
    origin: str,
    scopes: tuple[str, ...],
) -> None:
    """Register a confidential OAuth client and print its credentials."""
    import asyncio

    from authgate.domain.services import ClientRegistry
    from authgate.infrastructure.persistence.database import get_db_manager
    from authgate.infrastructure.persistence.repositories import OAuthClientRepository

    settings = get_settings()
    configure_logging(settings)

    async def register() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                registry = ClientRegistry(session, OAuthClientRepository(session))
                client, client_secret = await registry.register_client(
                    name=name,
                    redirect_uris=list(redirect_uris),
                    allowed_origin=origin,
                    scopes=list(scopes) or None,
                )
        finally:
            await db.disconnect()

        click.echo(
            f"\nClient registered successfully!\n"
            f"  Client ID:     {client.id}\n"
            f"  Client Secret: {client_secret}\n"
            f"  Scopes:        {' '.join(client.scopes)}\n"
            f"\nStore the secret now, it cannot be shown again.\n"
        )

    asyncio.run(register())


@cli.command()
def cleanup() -> None:
    """Delete expired authorization codes, tokens and email change requests."""
    import asyncio

    from authgate.infrastructure.persistence.database import get_db_manager
    from authgate.infrastructure.persistence.repositories import (
        AuthorizationCodeRepository,
        EmailChangeRepository,
        OAuthTokenRepository,
    )

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def purge() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                codes = await AuthorizationCodeRepository(session).delete_expired()
                tokens = await OAuthTokenRepository(session).delete_expired()
                changes = await EmailChangeRepository(session).delete_expired()
                await session.commit()
        finally:
            await db.disconnect()

        logger.info(
            "Expired records deleted",
            authorization_codes=codes,
            tokens=tokens,
            email_change_requests=changes,
        )
        click.echo(
            f"Deleted {codes} authorization codes, {tokens} tokens "
            f"and {changes} email change requests."
        )

    asyncio.run(purge())


@cli.command()
def check_email() -> None:
    """Check the configured email provider's connection."""
    import asyncio

    from authgate.infrastructure.services.email_service import EmailService

    settings = get_settings()
    configure_logging(settings)

    try:
        service = EmailService(settings=settings)
    except ValueError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1)

    success, error = asyncio.run(service.check_connection())
    if not success:
        click.echo(f"ERROR: {error}", err=True)
        raise SystemExit(1)
    click.echo(f"Email provider '{settings.email_provider}' is reachable.")


@cli.command()
def info() -> None:
    """Display AuthGate configuration."""
    settings = get_settings()

    click.echo(f"""
AuthGate v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:   {settings.environment}
  Debug:         {settings.debug}
  External URL:  {settings.external_url}
  API Prefix:    {settings.api_prefix}

Server:
  Host:          {settings.host}
  Port:          {settings.port}
  Workers:       {settings.workers}

Database:
  URL:           {settings.database_url}

OAuth:
  Code Expire:   {settings.authorization_code_expire_minutes} minutes
  Access Expire: {settings.access_token_expire_seconds} seconds
  Refresh Exp:   {settings.refresh_token_expire_days} days
  Clients:       {len(settings.oauth_clients)} configured

Email:
  Provider:      {settings.email_provider}
  Code Store:    {settings.email_code_store}

Logging:
  Level:         {settings.log_level}
  Format:        {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called by the ``authgate`` command and ``python -m authgate``.
    """
    cli()


if __name__ == "__main__":
    main()
