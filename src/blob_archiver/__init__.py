# src/blob_archiver/__init__.py
"""
blob-archiver: Cross-account archival of Azure Storage blobs.

This package copies a blob from a source container into a target container
with a server-side copy authorised by a short-lived, read-only SAS, waits for
the copy to settle, and demotes the archived blob to the cool access tier
when the target account supports it.

The primary entry point for programmatic use is the `BlobTransfer` class.
"""

from typing import List

from blob_archiver.copying import AzureBlobCopyService, BlobCopyService, CopyStatus
from blob_archiver.transfer import BlobTransfer

__all__: List[str] = [
    "AzureBlobCopyService",
    "BlobCopyService",
    "BlobTransfer",
    "CopyStatus",
]
