# src/blob_archiver/pipeline.py
"""Runs blob transfers from configured source and target storage accounts."""

import asyncio
import logging
from typing import List, Optional, Tuple

from azure.storage.blob.aio import BlobClient, BlobServiceClient, ContainerClient

from blob_archiver.config import Config
from blob_archiver.copying import AzureBlobCopyService
from blob_archiver.exceptions import CopyCancelledError, TransferError
from blob_archiver.transfer import BlobTransfer

logger: logging.Logger = logging.getLogger(__name__)


class BlobArchivePipeline:
    """Archives a batch of named blobs, one independent transfer per blob."""

    def __init__(self, config: Config, shutdown_event: asyncio.Event) -> None:
        """
        Initializes the pipeline with the given configuration.

        Args:
            config (Config): The application configuration.
            shutdown_event (asyncio.Event): Event to signal graceful shutdown.
        """
        self._config: Config = config
        self._shutdown_event: asyncio.Event = shutdown_event
        self._transfer: BlobTransfer = BlobTransfer(
            AzureBlobCopyService(
                poll_interval_s=config.app.poll_interval_s,
                timeout_s=config.app.copy_timeout_s,
                tier_account_kinds=config.app.tier_account_kinds,
                cancel_event=shutdown_event,
            ),
            config.app,
        )

    async def run(self, names: List[str]) -> None:
        """
        Archives every blob in `names` from the source to the target container.

        Transfers run concurrently up to `max_concurrency` and do not affect
        each other; a failed blob does not stop the others.

        Args:
            names (List[str]): Names of the blobs in the source container.

        Raises:
            TransferError: If one or more blobs could not be archived.
        """
        logger.info(
            f"Archiving {len(names)} blob(s) from '{self._config.source.container}' "
            f"to '{self._config.target.container}'."
        )
        semaphore: asyncio.Semaphore = asyncio.Semaphore(
            self._config.app.max_concurrency
        )

        async with (
            BlobServiceClient.from_connection_string(
                self._config.source.connection_string
            ) as source_service,
            BlobServiceClient.from_connection_string(
                self._config.target.connection_string
            ) as target_service,
        ):
            container: ContainerClient = target_service.get_container_client(
                self._config.target.container
            )

            async def archive(name: str) -> None:
                async with semaphore:
                    if self._shutdown_event.is_set():
                        raise CopyCancelledError(
                            f"Shutdown requested, skipped '{name}'."
                        )
                    source: BlobClient = source_service.get_blob_client(
                        self._config.source.container, name
                    )
                    await self._transfer.transfer(source, container, name)

            results: List[Optional[BaseException]] = await asyncio.gather(
                *(archive(name) for name in names), return_exceptions=True
            )

        failures: List[Tuple[str, BaseException]] = [
            (name, result)
            for name, result in zip(names, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            failed_names: str = ", ".join(name for name, _ in failures)
            raise TransferError(
                f"{len(failures)} of {len(names)} blob(s) failed to archive: "
                f"{failed_names}"
            )
        logger.info(f"Archived {len(names)} blob(s) successfully.")
