# src/blob_archiver/copying.py
"""
Server-side blob copy and access tier operations.

`BlobCopyService` is the small capability set the transfer orchestration
depends on: start a copy and wait for its outcome, and demote the copy to a
cheaper access tier. `AzureBlobCopyService` implements it on top of the
asynchronous Azure Storage Blob client.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Optional

from azure.storage.blob import StandardBlobTier

from blob_archiver.config import TIER_ELIGIBLE_ACCOUNT_KINDS
from blob_archiver.exceptions import CopyCancelledError, CopyTimeoutError

if TYPE_CHECKING:
    from azure.storage.blob import BlobProperties
    from azure.storage.blob.aio import BlobClient

logger: logging.Logger = logging.getLogger(__name__)


class CopyStatus(Enum):
    """The state of a server-side copy job, as reported on the target blob."""

    NOT_STARTED = "not-started"
    PENDING = "pending"
    SUCCESS = "success"
    ABORTED = "aborted"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_properties(cls, properties: "BlobProperties") -> "CopyStatus":
        """
        Reads the copy status from freshly fetched blob properties.

        Args:
            properties (BlobProperties): The target blob's properties.

        Returns:
            CopyStatus: The observed status, `NOT_STARTED` if the blob carries
                no copy information, `UNKNOWN` if the service reports a value
                outside the known set.
        """
        raw: Any = properties.copy.status if properties.copy else None
        if raw is None:
            return cls.NOT_STARTED
        value: str = str(getattr(raw, "value", raw))
        try:
            return cls(value.lower())
        except ValueError:
            logger.warning(
                f"Unrecognised copy status '{value}'; treating it as terminal."
            )
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self is not CopyStatus.PENDING

    def __str__(self) -> str:
        # "aborted" -> "Aborted", "not-started" -> "NotStarted"
        return "".join(part.capitalize() for part in self.value.split("-"))


class BlobCopyService(ABC):
    """The copy and tier operations a storage backend must provide."""

    @abstractmethod
    async def copy(self, target: "BlobClient", source_url: str) -> CopyStatus:
        """
        Copies the blob at `source_url` into `target` and waits for the outcome.

        Args:
            target (BlobClient): The destination blob.
            source_url (str): A URL the destination can read the source from.

        Returns:
            CopyStatus: The terminal status of the copy.
        """

    @abstractmethod
    async def set_access_tier(
        self, target: "BlobClient", tier: StandardBlobTier
    ) -> bool:
        """
        Applies `tier` to `target` if the destination account supports it.

        Args:
            target (BlobClient): The blob to re-tier.
            tier (StandardBlobTier): The desired access tier.

        Returns:
            bool: True if the tier was set, False if the account cannot tier blobs.
        """


class AzureBlobCopyService(BlobCopyService):
    """
    Copies blobs with `start_copy_from_url` and polls until the copy settles.

    Polling waits on a cancel event between status checks, so a shutdown
    request interrupts the wait instead of blocking until the next check.
    """

    def __init__(
        self,
        poll_interval_s: float = 0.5,
        timeout_s: Optional[float] = None,
        tier_account_kinds: FrozenSet[str] = TIER_ELIGIBLE_ACCOUNT_KINDS,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Initialize the copy service.

        Args:
            poll_interval_s (float): Wait between copy status checks in seconds.
            timeout_s (float, optional): Deadline for a pending copy in
                seconds. None waits indefinitely.
            tier_account_kinds (FrozenSet[str]): Account kinds that support
                blob access tiers.
            cancel_event (asyncio.Event, optional): Event that aborts polling
                when set.
        """
        self._poll_interval_s: float = poll_interval_s
        self._timeout_s: Optional[float] = timeout_s
        self._tier_account_kinds: FrozenSet[str] = tier_account_kinds
        self._cancel_event: asyncio.Event = cancel_event or asyncio.Event()

    async def copy(self, target: "BlobClient", source_url: str) -> CopyStatus:
        """
        Starts a server-side copy into `target` and waits until it is no
        longer pending.

        Args:
            target (BlobClient): The destination blob.
            source_url (str): The SAS URL of the source blob.

        Returns:
            CopyStatus: The terminal status of the copy.

        Raises:
            CopyTimeoutError: If the copy is still pending after the deadline.
            CopyCancelledError: If the cancel event is set while polling.
        """
        await target.start_copy_from_url(source_url)
        logger.info(f"Blob copy started for '{target.blob_name}'.")

        try:
            return await asyncio.wait_for(
                self._wait_for_copy(target), timeout=self._timeout_s
            )
        except asyncio.TimeoutError as e:
            raise CopyTimeoutError(
                f"Copy to {target.url} was still pending after {self._timeout_s}s."
            ) from e

    async def _wait_for_copy(self, target: "BlobClient") -> CopyStatus:
        """Polls the target's properties until the copy leaves `pending`."""
        status: CopyStatus = CopyStatus.PENDING
        while not status.is_terminal:
            await self._pause(target)
            properties: "BlobProperties" = await target.get_blob_properties()
            status = CopyStatus.from_properties(properties)
            logger.debug(f"Copy status of '{target.blob_name}': {status}")
        return status

    async def _pause(self, target: "BlobClient") -> None:
        """Waits one poll interval, failing fast if cancellation is requested."""
        try:
            await asyncio.wait_for(
                self._cancel_event.wait(), timeout=self._poll_interval_s
            )
        except asyncio.TimeoutError:
            return  # This is the normal path
        raise CopyCancelledError(
            f"Shutdown requested while copy to {target.url} was pending."
        )

    async def set_access_tier(
        self, target: "BlobClient", tier: StandardBlobTier
    ) -> bool:
        """
        Sets the access tier of `target` when its account kind supports tiers.

        An unsupported account kind is an expected environment variation and
        is reported by returning False. Storage errors propagate.

        Args:
            target (BlobClient): The blob to re-tier.
            tier (StandardBlobTier): The desired access tier.

        Returns:
            bool: True if the tier was set, False if the account kind does not
                support blob access tiers.
        """
        account_info: Dict[str, str] = await target.get_account_information()
        account_kind: Optional[str] = account_info.get("account_kind")

        if account_kind not in self._tier_account_kinds:
            logger.warning(
                f"Unable to set access tier of '{target.blob_name}' to "
                f"'{tier.value}' as the target storage account kind "
                f"({account_kind}) does not support blob access tiers."
            )
            return False

        await target.set_standard_blob_tier(tier)
        logger.info(f"Access tier of '{target.blob_name}' set to '{tier.value}'.")
        return True
