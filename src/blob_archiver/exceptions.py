# src/blob_archiver/exceptions.py
"""Custom exceptions for the blob-archiver application."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blob_archiver.copying import CopyStatus


class BlobArchiverError(Exception):
    """Base exception for all application-specific errors."""

    pass


class ConfigError(BlobArchiverError):
    """Raised for configuration-related issues."""

    pass


class TransferError(BlobArchiverError):
    """Raised when a blob transfer fails permanently."""

    pass


class SourceNotFoundError(TransferError):
    """Raised when the source blob no longer exists."""

    pass


class CopyFailedError(TransferError):
    """
    Raised when a server-side copy settles in a non-success state.

    Attributes:
        source_url (str): Absolute URL of the source blob, without SAS.
        target_url (str): Absolute URL of the target blob.
        status (CopyStatus): The terminal copy status that was observed.
    """

    def __init__(self, source_url: str, target_url: str, status: "CopyStatus") -> None:
        self.source_url: str = source_url
        self.target_url: str = target_url
        self.status: "CopyStatus" = status
        super().__init__(
            f"Failed to complete copy of {source_url} to {target_url}. "
            f"Copy state was {status}"
        )


class CopyTimeoutError(TransferError):
    """Raised when a copy is still pending after the configured deadline."""

    pass


class CopyCancelledError(TransferError):
    """Raised when shutdown is requested while a copy is still pending."""

    pass
