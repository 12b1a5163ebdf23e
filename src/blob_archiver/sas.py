# src/blob_archiver/sas.py
"""
Builds read-only shared access signature (SAS) URLs for source blobs.

The destination account pulls the source blob through this URL, so the
copy works across storage accounts without sharing account keys.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from azure.storage.blob import BlobSasPermissions, generate_blob_sas

from blob_archiver.exceptions import ConfigError

if TYPE_CHECKING:
    from azure.storage.blob.aio import BlobClient

logger: logging.Logger = logging.getLogger(__name__)


def build_read_sas_url(
    blob: "BlobClient",
    validity: timedelta,
    now: Optional[datetime] = None,
) -> str:
    """
    Generates a time-boxed, read-only SAS URL for a blob.

    The signature has no start time, so it is valid immediately, and expires
    `validity` after issuance. Timestamps are UTC with second granularity.
    Nothing is sent over the network.

    Args:
        blob (BlobClient): The blob to grant read access to. Its credential
            must be a shared key credential.
        validity (timedelta): How long the URL stays usable. Must be positive.
        now (datetime, optional): Timezone-aware issuance time, converted to
            UTC. Defaults to the current UTC time.

    Returns:
        str: The blob's absolute URL with the SAS token appended.

    Raises:
        ValueError: If `validity` is not strictly positive or `now` is naive.
        ConfigError: If the blob has no URL or no usable account key.
    """
    if validity <= timedelta(0):
        raise ValueError(f"SAS validity must be positive, got {validity}.")
    if not blob.url:
        raise ConfigError(f"Blob '{blob.blob_name}' has no addressable URL.")

    account_key: Optional[str] = getattr(blob.credential, "account_key", None)
    if not account_key:
        raise ConfigError(
            f"Cannot sign a SAS for '{blob.url}': the source client was not "
            "created with a shared key credential."
        )

    if now is not None and now.tzinfo is None:
        raise ValueError(f"SAS issuance time must be timezone-aware, got {now}.")
    issued_at: datetime = now or datetime.now(timezone.utc)
    issued_at = issued_at.astimezone(timezone.utc).replace(microsecond=0)
    expires_at: datetime = issued_at + validity

    token: str = generate_blob_sas(
        account_name=blob.account_name,
        container_name=blob.container_name,
        blob_name=blob.blob_name,
        snapshot=blob.snapshot,
        account_key=account_key,
        permission=BlobSasPermissions(read=True),
        expiry=expires_at,
    )
    logger.debug(
        f"Issued read-only SAS for '{blob.url}' expiring {expires_at.isoformat()}."
    )

    separator: str = "&" if "?" in blob.url else "?"
    return f"{blob.url}{separator}{token}"
