# tests/conftest.py
"""
Pytest configuration and fixtures for the blob-archiver tests.

This module sets up the testing environment, including:
- Source blob clients signed with a fake shared key, so SAS generation runs
  for real without touching the network.
- Mocked target containers, target blobs, and copy services.
- A Dockerised Azurite emulator and per-test containers for the e2e suite.
"""

import base64
import uuid
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import requests
from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob.aio import BlobClient, BlobServiceClient
from requests.exceptions import ConnectionError

from blob_archiver.config import AppConfig, Config, StorageConfig
from blob_archiver.copying import BlobCopyService, CopyStatus

# --- Constants ---
SOURCE_ACCOUNT: str = "sourceaccount"
SOURCE_CONTAINER: str = "incoming"
SOURCE_BLOB_NAME: str = "SourceBlob"
SOURCE_BLOB_SIZE: int = 10
TARGET_CONTAINER: str = "TargetArchive"
TARGET_BLOB_URL: str = (
    f"https://archiveaccount.blob.core.windows.net/{TARGET_CONTAINER}/"
    f"{SOURCE_BLOB_NAME}"
)
FAKE_ACCOUNT_KEY: str = base64.b64encode(b"fakekeyval").decode()
SOURCE_CONNECTION_STRING: str = (
    f"DefaultEndpointsProtocol=https;AccountName={SOURCE_ACCOUNT};"
    f"AccountKey={FAKE_ACCOUNT_KEY};EndpointSuffix=core.windows.net"
)

# Well-known Azurite development account
AZURITE_ACCOUNT: str = "devstoreaccount1"
AZURITE_KEY: str = (
    "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/"
    "K1SZFPTOtr/KBHBeksoGMGw=="
)


# --- Unit Fixtures ---
@pytest.fixture(scope="function")
def source_blob() -> BlobClient:
    """
    Provide a real source blob client whose property fetch is mocked.

    The client carries a shared key credential, so SAS URLs are signed
    by the Azure SDK exactly as in production.

    Returns:
        BlobClient: A client for `incoming/SourceBlob` reporting 10 bytes.
    """
    blob: BlobClient = BlobClient.from_connection_string(
        SOURCE_CONNECTION_STRING, SOURCE_CONTAINER, SOURCE_BLOB_NAME
    )
    blob.get_blob_properties = AsyncMock(  # type: ignore[method-assign]
        return_value=MagicMock(size=SOURCE_BLOB_SIZE)
    )
    return blob


@pytest.fixture(scope="function")
def target_blob() -> MagicMock:
    """
    Provide a mocked target blob client.

    Returns:
        MagicMock: A stand-in for the archived blob, reported as existing.
    """
    blob: MagicMock = MagicMock(name="target_blob")
    blob.blob_name = SOURCE_BLOB_NAME
    blob.url = TARGET_BLOB_URL
    blob.exists = AsyncMock(return_value=True)
    return blob


@pytest.fixture(scope="function")
def target_container(target_blob: MagicMock) -> MagicMock:
    """
    Provide a mocked target container that hands out `target_blob`.

    Args:
        target_blob (MagicMock): The blob returned by `get_blob_client`.

    Returns:
        MagicMock: A stand-in for the `TargetArchive` container client.
    """
    container: MagicMock = MagicMock(name="target_container")
    container.container_name = TARGET_CONTAINER
    container.url = f"https://archiveaccount.blob.core.windows.net/{TARGET_CONTAINER}"
    container.create_container = AsyncMock()
    container.get_blob_client.return_value = target_blob
    return container


@pytest.fixture(scope="function")
def copy_service() -> MagicMock:
    """
    Provide a copy service double whose copy succeeds and whose tier change
    is applied.

    Returns:
        MagicMock: A `BlobCopyService` with awaitable `copy` and
            `set_access_tier`.
    """
    service: MagicMock = MagicMock(spec=BlobCopyService)
    service.copy.return_value = CopyStatus.SUCCESS
    service.set_access_tier.return_value = True
    return service


@pytest.fixture(scope="function")
def properties_factory() -> Callable[[Any], MagicMock]:
    """
    Provide a factory for blob properties carrying a given copy status.

    Returns:
        Callable[[Any], MagicMock]: Builds properties whose `copy.status` is
            the given value.
    """

    def _creator(status: Any) -> MagicMock:
        properties: MagicMock = MagicMock()
        properties.copy.status = status
        return properties

    return _creator


@pytest.fixture(scope="function")
def test_config() -> Config:
    """
    Provide a Config object that does not depend on the environment.

    Returns:
        Config: A Config instance with fast polling, for use in tests.
    """
    return Config(
        source=StorageConfig(
            connection_string=SOURCE_CONNECTION_STRING, container=SOURCE_CONTAINER
        ),
        target=StorageConfig(
            connection_string=SOURCE_CONNECTION_STRING, container=TARGET_CONTAINER
        ),
        app=AppConfig(poll_interval_s=0.01, copy_timeout_s=30.0, max_concurrency=2),
    )


# --- Docker Fixtures ---
@pytest.fixture(scope="session")
def docker_compose_file(pytestconfig: pytest.Config) -> str:
    """
    Locate the docker-compose.yml file for the test suite.

    Args:
        pytestconfig (pytest.Config): The pytest configuration objects.

    Returns:
        str: The absolute path to the docker-compose.yml file.
    """
    return str(Path(pytestconfig.rootdir) / "tests" / "docker-compose.yml")


@pytest.fixture(scope="session")
def docker_compose_project_name() -> str:
    """
    Define a unique, static project name for the Docker stack.

    Returns:
        str: A unique name for the docker-compose project.
    """
    return "blob-archiver-tests"


def _is_azurite_responsive(url: str) -> bool:
    """
    Check if the Azurite blob endpoint answers HTTP requests.

    Args:
        url (str): The base URL of the Azurite blob service.

    Returns:
        bool: True if the service is responsive, False otherwise.
    """
    try:
        requests.get(url, timeout=1)
        return True
    except ConnectionError:
        return False


@pytest.fixture(scope="session")
def azurite_connection_string(docker_ip: str, docker_services: Any) -> str:
    """
    Ensure Azurite is running and return a connection string for it.

    Args:
        docker_ip (str): The IP address of the Docker host, provided by pytest-docker.
        docker_services (Any): The pytest-docker services fixture.

    Returns:
        str: A shared key connection string for the Azurite blob service.
    """
    port: int = docker_services.port_for("azurite", 10000)
    blob_endpoint: str = f"http://{docker_ip}:{port}/{AZURITE_ACCOUNT}"
    docker_services.wait_until_responsive(
        timeout=30.0, pause=0.1, check=lambda: _is_azurite_responsive(blob_endpoint)
    )
    return (
        f"DefaultEndpointsProtocol=http;AccountName={AZURITE_ACCOUNT};"
        f"AccountKey={AZURITE_KEY};BlobEndpoint={blob_endpoint};"
    )


@pytest_asyncio.fixture(scope="function")
async def azurite_containers(
    azurite_connection_string: str,
) -> AsyncGenerator[Dict[str, str], None]:
    """
    Create an isolated source container for a single test function.

    The target container is only named here: creating it is part of the
    behaviour under test. Both containers are deleted afterwards.

    Args:
        azurite_connection_string (str): Connection string for Azurite.

    Yield:
        AsyncGenerator[Dict[str, str], None]: The source and target
            container names.
    """
    suffix: str = uuid.uuid4().hex[:12]
    names: Dict[str, str] = {
        "source": f"source-{suffix}",
        "target": f"archive-{suffix}",
    }
    async with BlobServiceClient.from_connection_string(
        azurite_connection_string
    ) as service:
        await service.create_container(names["source"])

        yield names

        for container_name in names.values():
            try:
                await service.delete_container(container_name)
            except ResourceNotFoundError:
                continue
