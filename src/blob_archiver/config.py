# src/blob_archiver/config.py
"""
Configuration for the blob-archiver.

This module centralizes all configuration, loading connection strings and
container names from environment variables and providing typed dataclasses
for use throughout the application.
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from blob_archiver.exceptions import ConfigError

# Account kinds that support blob access tiers.
TIER_ELIGIBLE_ACCOUNT_KINDS: FrozenSet[str] = frozenset(
    {"BlobStorage", "BlockBlobStorage", "StorageV2"}
)


def _get_env_var(name: str, default: Optional[str] = None) -> str:
    """
    Retrieves a required environment variable.

    Args:
        name (str): The name of the environment variable.
        default (str, optional): The default value if the variable is not set.

    Returns:
        str: The value of the environment variable.
    """
    value: Optional[str] = os.environ.get(name, default)
    if not value:
        raise ConfigError(f"Environment variable '{name}' must be set.")
    return value


def _tier_account_kinds_from_env() -> FrozenSet[str]:
    """
    Reads the tier-eligible account kinds override, if any.

    Returns:
        FrozenSet[str]: The kinds listed in `BLOB_ARCHIVER_TIER_ACCOUNT_KINDS`,
            or the default allow-list when the variable is unset or empty.
    """
    raw: str = os.environ.get("BLOB_ARCHIVER_TIER_ACCOUNT_KINDS", "")
    kinds: FrozenSet[str] = frozenset(k.strip() for k in raw.split(",") if k.strip())
    return kinds or TIER_ELIGIBLE_ACCOUNT_KINDS


@dataclass(frozen=True)
class StorageConfig:
    """
    Represents one side of the transfer: a storage account and a container.

    Attributes:
        connection_string (str): The storage account connection string.
        container (str): The container name.
    """

    connection_string: str
    container: str


@dataclass(frozen=True)
class AppConfig:
    """
    Defines the application's operational parameters.

    Attributes:
        sas_validity_s (int): Lifetime of the read-only source SAS in seconds.
        poll_interval_s (float): Wait between copy status checks in seconds.
        copy_timeout_s (float, optional): Deadline for a pending copy in
            seconds. None waits indefinitely.
        target_tier (str): Access tier applied to the copied blob.
        tier_account_kinds (FrozenSet[str]): Account kinds that support tiers.
        max_concurrency (int): Maximum number of transfers run at once.
    """

    sas_validity_s: int = 300
    poll_interval_s: float = 0.5
    copy_timeout_s: Optional[float] = 3600.0
    target_tier: str = "Cool"
    tier_account_kinds: FrozenSet[str] = field(
        default_factory=_tier_account_kinds_from_env
    )
    max_concurrency: int = 8


@dataclass(frozen=True)
class Config:
    """
    Top-level configuration container for the entire application.

    Attributes:
        source (StorageConfig): The account and container blobs are read from.
        target (StorageConfig): The account and container blobs are archived to.
        app (AppConfig): General application settings.
    """

    source: StorageConfig = field(
        default_factory=lambda: StorageConfig(
            connection_string=_get_env_var("BLOB_ARCHIVER_SOURCE_CONNECTION_STRING"),
            container=_get_env_var("BLOB_ARCHIVER_SOURCE_CONTAINER"),
        )
    )
    target: StorageConfig = field(
        default_factory=lambda: StorageConfig(
            connection_string=_get_env_var("BLOB_ARCHIVER_TARGET_CONNECTION_STRING"),
            container=_get_env_var("BLOB_ARCHIVER_TARGET_CONTAINER"),
        )
    )
    app: AppConfig = field(default_factory=AppConfig)
