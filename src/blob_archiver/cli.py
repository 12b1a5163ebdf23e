# src/blob_archiver/cli.py
"""Command-line interface for the blob-archiver tool."""

import asyncio
import logging
import sys
from typing import Any, List

import click
from dotenv import load_dotenv
from rich.logging import RichHandler

from blob_archiver.config import AppConfig, Config
from blob_archiver.exceptions import BlobArchiverError
from blob_archiver.signals import ShutdownSignals

logger: logging.Logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure rich-based logging for the application."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Silence noisy loggers
    for logger_name in [
        "azure",
        "azure.core.pipeline.policies.http_logging_policy",
        "urllib3",
    ]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


async def main_async(config: Config, names: List[str]) -> None:
    """
    Asynchronously archive the named blobs.

    Args:
        config (Config): The application configuration.
        names (List[str]): Blob names in the source container.
    """
    # Lazily import to keep CLI fast
    from blob_archiver.pipeline import BlobArchivePipeline

    async with ShutdownSignals() as shutdown_event:
        pipeline: BlobArchivePipeline = BlobArchivePipeline(config, shutdown_event)
        await pipeline.run(names)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--copy-timeout",
    type=click.FloatRange(min=0),
    default=3600.0,
    help="Seconds to wait for a pending copy. 0 waits indefinitely.",
    show_default=True,
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=0.5,
    help="Seconds between copy status checks.",
    show_default=True,
)
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=8,
    help="Maximum number of blobs archived at once.",
    show_default=True,
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set the logging level.",
    show_default=True,
)
def cli(**kwargs: Any) -> None:
    """
    Archive blobs into a storage account of your choice.

    Each NAME is copied server-side from the source container into the target
    container, under the same name, using a short-lived read-only SAS. Once
    the copy succeeds the archived blob is moved to the cool access tier if
    the target account supports it.

    Connection strings and container names must be set via environment
    variables. See the .env.example file for required variables.
    """
    load_dotenv()
    setup_logging(kwargs["log_level"])

    try:
        app_config: AppConfig = AppConfig(
            copy_timeout_s=kwargs["copy_timeout"] or None,
            poll_interval_s=kwargs["poll_interval"],
            max_concurrency=kwargs["max_concurrency"],
        )
        config: Config = Config(app=app_config)

        asyncio.run(main_async(config, list(kwargs["names"])))
        logger.info("✅ Run completed successfully.")
    except BlobArchiverError as e:
        logger.critical(f"A critical application error occurred: {e}")
        sys.exit(1)
    except Exception:
        logger.critical(
            "An unexpected error caused the application to fail:", exc_info=True
        )
        sys.exit(1)


if __name__ == "__main__":
    cli()
