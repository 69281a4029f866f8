import logging
import os
import time

import click
from rich.logging import RichHandler
from testcontainers.core.config import testcontainers_config

from .constants import DEFAULT_CONFIG_FILE
from .core import Provisioner, console
from .errors import InitScriptError, LocalPostgreSQLError
from .services.config_loader import ConfigLoader

# CLI option name -> configuration key
_OPTION_KEYS = {
    "image": "container.image",
    "name": "container.name",
    "port": "container.port",
    "follow_logs": "container.log.follow",
    "startup_timeout": "container.startup.timeout",
    "database": "database.name",
    "username": "database.username",
    "password": "database.password",
    "app_username": "database.application.username",
    "app_password": "database.application.password",
    "init_script": "database.init.script",
}


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _wait_for_interrupt():
    while True:
        time.sleep(1)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--image", required=False, help="Docker image to run (default: postgres:16).")
@click.option("--name", required=False, help="Name for the container.")
@click.option("--port", required=False, type=int, default=None, help="Host port bound to PostgreSQL.")
@click.option(
    "--follow-logs/--no-follow-logs",
    default=None,
    help="Stream container output into the log.",
)
@click.option(
    "--startup-timeout",
    required=False,
    type=float,
    default=None,
    help="Seconds to wait for PostgreSQL to accept connections.",
)
@click.option("--database", required=False, help="Database name.")
@click.option("--username", required=False, help="Admin username.")
@click.option("--password", required=False, help="Admin password.")
@click.option("--app-username", required=False, help="Application user username.")
@click.option("--app-password", required=False, help="Application user password.")
@click.option("--init-script", required=False, type=click.Path(), help="SQL script run once at startup.")
@click.option(
    "--keep-running",
    is_flag=True,
    default=False,
    help="Leave the container running on exit instead of removing it.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(config, keep_running, verbose, log_file, **options):
    """Start a disposable PostgreSQL container and keep it running until Ctrl+C."""
    logger = logging.getLogger("local_postgresql")

    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except LocalPostgreSQLError as exc:
        raise click.ClickException(str(exc)) from exc

    overrides = dict(config_values)
    for option, key in _OPTION_KEYS.items():
        value = _resolve_option(options.get(option), config_values, key)
        if value is not None:
            overrides[key] = value

    verbose = bool(verbose)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    if keep_running:
        # The testcontainers reaper would remove the container when this process exits.
        testcontainers_config.ryuk_disabled = True

    provisioner = Provisioner()
    created = []
    try:
        provisioner_config = provisioner.resolve(overrides)
        if not provisioner_config.enabled:
            console.print("[yellow]Local PostgreSQL is disabled (engaged: false). Nothing to start.[/yellow]")
            return

        handle = provisioner.provision(provisioner_config, on_created=created.append)
        details = provisioner.connection_details(handle, provisioner_config)
    except InitScriptError as exc:
        created.clear()
        if not testcontainers_config.ryuk_disabled:
            console.print(
                "[yellow]The testcontainers reaper removes the container shortly after this command exits. "
                "Rerun with --keep-running to keep it for inspection.[/yellow]"
            )
        raise click.ClickException(str(exc)) from exc
    except LocalPostgreSQLError as exc:
        for handle in created:
            provisioner.teardown(handle)
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        for handle in created:
            provisioner.teardown(handle)
        raise click.Abort()

    console.print(f"[bold green]PostgreSQL is ready:[/bold green] {details.url} (user {details.username})")

    if keep_running:
        console.print(f"[dim]Container {handle.container_name} left running.[/dim]")
        return

    console.print("[dim]Press Ctrl+C to stop and remove the container.[/dim]")
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        console.print("[bold red]Stopping...[/bold red]")
    finally:
        provisioner.teardown(handle)


if __name__ == "__main__":
    main()
