# src/blob_archiver/transfer.py
"""
Orchestrates the archival of a single blob into a target container.

A transfer refreshes the source blob, makes sure the target container
exists, starts a server-side copy from a short-lived read-only SAS URL,
waits for the copy to settle, and finally demotes the copy to a cheaper
access tier on a best-effort basis.
"""

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import StandardBlobTier

from blob_archiver.config import AppConfig
from blob_archiver.copying import BlobCopyService, CopyStatus
from blob_archiver.exceptions import (
    BlobArchiverError,
    ConfigError,
    CopyFailedError,
    SourceNotFoundError,
)
from blob_archiver.sas import build_read_sas_url

if TYPE_CHECKING:
    from azure.storage.blob import BlobProperties
    from azure.storage.blob.aio import BlobClient, ContainerClient

logger: logging.Logger = logging.getLogger(__name__)


async def ensure_container(
    container: "ContainerClient", log: logging.Logger = logger
) -> bool:
    """
    Creates `container` unless it already exists. Safe to call repeatedly.

    Args:
        container (ContainerClient): The container to create.
        log (logging.Logger): Where to report the outcome.

    Returns:
        bool: True if the container was created, False if it already existed.
    """
    try:
        await container.create_container()
    except ResourceExistsError:
        log.debug(f"Container '{container.container_name}' already exists.")
        return False
    log.info(f"Created container '{container.container_name}'.")
    return True


class BlobTransfer:
    """Copies one blob into a target container and demotes its access tier."""

    def __init__(
        self, copy_service: BlobCopyService, app_config: Optional[AppConfig] = None
    ) -> None:
        """
        Initializes the transfer with its copy backend.

        Args:
            copy_service (BlobCopyService): Performs the copy and tier operations.
            app_config (AppConfig, optional): Operational parameters. Defaults
                to `AppConfig()`.
        """
        self._copy_service: BlobCopyService = copy_service
        self._config: AppConfig = app_config or AppConfig()
        try:
            self._tier: StandardBlobTier = StandardBlobTier(self._config.target_tier)
        except ValueError as e:
            raise ConfigError(
                f"Unknown access tier '{self._config.target_tier}'."
            ) from e

    async def transfer(
        self,
        source: "BlobClient",
        container: "ContainerClient",
        name: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        """
        Archives `source` into `container` under the same blob name.

        Every failure is logged once and then re-raised to the caller. A
        failure to change the access tier after a successful copy is only
        logged as a warning.

        Args:
            source (BlobClient): The blob to archive. Must use a shared key
                credential so a SAS can be signed for it.
            container (ContainerClient): The container to archive into.
            name (str, optional): Logical name of the triggering blob, used in
                log messages. Defaults to the source blob name.
            log (logging.Logger, optional): Log sink. Defaults to this
                module's logger.

        Raises:
            SourceNotFoundError: If the source blob no longer exists.
            CopyFailedError: If the copy settles in any state but `success`.
            CopyTimeoutError: If the copy does not settle before the deadline.
            CopyCancelledError: If shutdown is requested while copying.
        """
        log = log or logger
        name = name or source.blob_name

        try:
            source_size: int = await self._refresh_source(source)
            log.info(f"Processing blob '{name}' ({source_size} bytes).")
            log.info(f"Targeting container '{container.container_name}'.")
            await ensure_container(container, log)

            target: "BlobClient" = container.get_blob_client(source.blob_name)
            log.info(f"Targeting blob '{target.blob_name}'.")
            target_exists: bool = await target.exists()
            log.info(f"Target blob exists? {target_exists}")

            source_url: str = build_read_sas_url(
                source, timedelta(seconds=self._config.sas_validity_s)
            )
            status: CopyStatus = await self._copy_service.copy(target, source_url)

            if status is not CopyStatus.SUCCESS:
                error: CopyFailedError = CopyFailedError(source.url, target.url, status)
                log.error(str(error))
                raise error

            log.info(f"Archived '{name}' to {container.url}.")
            await self._demote(target, name, log)

        except CopyFailedError:
            raise
        except (AzureError, BlobArchiverError) as e:
            log.error(f"Failed to archive '{name}': {type(e).__name__} - {e}")
            raise
        except Exception:
            log.exception(f"An unexpected error occurred archiving '{name}'")
            raise

    async def _refresh_source(self, source: "BlobClient") -> int:
        """
        Fetches the source blob's current properties.

        Returns:
            int: The size of the source blob in bytes.
        """
        try:
            properties: "BlobProperties" = await source.get_blob_properties()
        except ResourceNotFoundError as e:
            raise SourceNotFoundError(
                f"Source blob {source.url} no longer exists."
            ) from e
        return properties.size

    async def _demote(
        self, target: "BlobClient", name: str, log: logging.Logger
    ) -> None:
        """Sets the configured access tier on `target`, never failing the transfer."""
        try:
            tier_set: bool = await self._copy_service.set_access_tier(
                target, self._tier
            )
        except AzureError as e:
            log.warning(
                f"Archived '{name}' but could not set its access tier to "
                f"'{self._tier.value}': {type(e).__name__} - {e}"
            )
            return

        if tier_set:
            log.info(f"Set '{name}' access tier to {self._tier.value}.")
        else:
            log.warning(f"Left '{name}' in its default access tier.")
