"""CLI entry point for the book manager."""

from functools import partial
from pathlib import Path

import click
from loguru import logger
from pydantic import ValidationError

from .api import openlibrary
from .automation.watcher import run_forever, watch
from .config import ManagerConfig
from .dispatcher import EventDispatcher
from .extractor import MetadataExtractor, get_client

log = logger.bind(stage="cli")


def load_config(config_file: str | None, **overrides) -> ManagerConfig:
    """Build the config from .env/env vars plus any CLI overrides that were given."""
    kwargs = {k: v for k, v in overrides.items() if v is not None}
    env_file = Path(config_file) if config_file else Path(".env")
    try:
        return ManagerConfig(_env_file=env_file, **kwargs)  # type: ignore[call-arg]
    except ValidationError as e:
        missing = [
            str(err["loc"][0]).upper()
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if missing:
            raise click.UsageError(
                f"Missing required setting(s): {', '.join(missing)}"
            ) from e
        raise click.UsageError(f"Invalid configuration: {e}") from e


@click.command()
@click.option(
    "-w",
    "--watch-path",
    type=click.Path(file_okay=False),
    default=None,
    help="Inbox directory to watch (overrides WATCH_PATH).",
)
@click.option(
    "-o",
    "--out-path",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to move renamed books into (overrides OUT_PATH).",
)
@click.option(
    "--dry-run", is_flag=True, help="Log destinations without moving anything."
)
@click.option(
    "--isolate-failures",
    is_flag=True,
    help="Relocate the good files of an event even if others fail.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
def main(
    watch_path: str | None,
    out_path: str | None,
    dry_run: bool,
    isolate_failures: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Watch an inbox for ebooks and file them as "Title - Author (Year)"."""
    config = load_config(
        config_file,
        watch_path=watch_path,
        out_path=out_path,
        dry_run=dry_run or None,
        isolate_failures=isolate_failures or None,
        log_level="DEBUG" if verbose else None,
    )
    config.setup_logging()

    if not config.watch_path.is_dir():
        raise click.UsageError(f"Watch path is not a directory: {config.watch_path}")
    config.ensure_dirs()

    client = get_client(config.pipeline_llm_base_url, config.pipeline_llm_api_key)
    extractor = MetadataExtractor(
        client,
        model=config.pipeline_llm_model,
        max_rounds=config.max_tool_rounds,
        search=partial(
            openlibrary.search,
            timeout=config.search_timeout,
            user_agent=config.user_agent,
        ),
    )

    log.info(
        f"Starting book manager: watch={config.watch_path} out={config.out_path} "
        f"owner={config.owner} dry_run={config.dry_run}"
    )
    events = watch(config.watch_path)
    try:
        with EventDispatcher(config, extractor) as dispatcher:
            failures = run_forever(dispatcher, events)
    finally:
        events.close()
        client.close()

    log.info(f"Book manager stopped ({failures} failed event(s))")
