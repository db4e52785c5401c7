import asyncio
import json
from pathlib import Path

import click
from loguru import logger

from synchook import __version__


@click.group()
@click.version_option(__version__, prog_name="synchook")
def main() -> None:
    """synchook - run scripts in response to Syncthing events."""


def _settings_or_exit(**overrides: object):
    from synchook.bridge.settings import ConfigError, load_settings

    try:
        return load_settings(**overrides)
    except ConfigError as exc:
        logger.error("{}", exc)
        raise SystemExit(2) from exc


def _registry_or_exit(path: Path):
    from synchook.bridge.registry import RegistryError, ScriptRegistry

    try:
        return ScriptRegistry.load(path)
    except RegistryError as exc:
        logger.error("{}", exc)
        raise SystemExit(2) from exc


def _client(settings):
    from synchook.bridge.client import SyncthingClient

    return SyncthingClient(
        settings.address,
        settings.port,
        settings.auth_key.get_secret_value(),
        timeout=settings.request_timeout,
    )


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


async def _run_bridge(settings, registry, *, once: bool) -> None:
    from synchook.bridge.dispatcher import ScriptDispatcher
    from synchook.bridge.poller import EventPoller

    dispatcher = ScriptDispatcher(registry, delay=settings.script_delay)
    try:
        async with _client(settings) as client:
            poller = EventPoller(client, dispatcher, interval=settings.request_interval)
            await poller.run(max_cycles=1 if once else None)
    except BaseException:
        # asyncio.run cancels whatever is still pending once this returns, so
        # launches sleeping out SCRIPT_DELAY must start before then.
        await dispatcher.flush()
        raise

    if once:
        # Launches are still sleeping out their delay; let them (and their
        # scripts) finish before the loop closes.
        await dispatcher.wait_idle()


@main.command()
@click.option("--once", is_flag=True, default=False, help="Run a single poll cycle, wait for its scripts, then exit.")
@click.option(
    "--scripts-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Scripts file (default: from SCRIPTS_FILE or ./scripts.json).",
)
def run(once: bool, scripts_file: Path | None) -> None:
    """Poll Syncthing for events and launch the registered scripts."""
    from synchook.bridge.client import NetworkError
    from synchook.bridge.log import setup_logging

    overrides = {"scripts_file": scripts_file} if scripts_file is not None else {}
    settings = _settings_or_exit(**overrides)
    setup_logging(settings.log_level)
    registry = _registry_or_exit(settings.scripts_file)

    try:
        asyncio.run(_run_bridge(settings, registry, once=once))
    except NetworkError as exc:
        logger.critical("Event bridge stopped: {}", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


async def _fetch(settings, since: int | None) -> list:
    async with _client(settings) as client:
        return await client.fetch_events_since(since)


@main.command()
@click.option("--since", type=click.IntRange(min=0), default=None, help="Only events with a higher id.")
def events(since: int | None) -> None:
    """Fetch buffered events once and print them as JSON lines."""
    from synchook.bridge.client import NetworkError
    from synchook.bridge.log import setup_logging
    from synchook.bridge.models.events import to_event

    settings = _settings_or_exit()
    setup_logging(settings.log_level)

    try:
        fetched = asyncio.run(_fetch(settings, since))
    except NetworkError as exc:
        logger.error("{}", exc)
        raise SystemExit(1) from exc

    for raw in fetched:
        click.echo(json.dumps(to_event(raw).to_dict()))


@main.command()
@click.option(
    "--file",
    "scripts_file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="SCRIPTS_FILE",
    default=Path("scripts.json"),
    show_default=True,
    help="Scripts file to validate.",
)
def scripts(scripts_file: Path) -> None:
    """Validate a scripts file and list its invocations."""
    registry = _registry_or_exit(scripts_file)

    if not len(registry):
        click.echo(f"{scripts_file}: no scripts registered.")
        return

    for event_type, invocations in registry.items():
        click.echo(f"{event_type}:")
        for invocation in invocations:
            where = f"  (cwd: {invocation.cwd})" if invocation.cwd else ""
            click.echo(f"  - {invocation.describe()}{where}")


if __name__ == "__main__":
    main()
