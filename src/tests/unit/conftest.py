"""Fixtures for provisioner unit tests."""

import os
from unittest.mock import AsyncMock

import pytest

from blockprov.config import ProvisionerConfig
from blockprov.infra.metadata import InstanceMetadata, InstanceMetadataClient
from blockprov.infra.storage import BlockStorageClient, DeleteVolumeResult, Volume
from blockprov.models import OCI_VOLUME_ID, VolumeDescriptor, VolumeRequest
from blockprov.sizes import GIB

VOLUME_ID = "ocid1.volume.oc1.phx.abyhqljrexample"
AVAILABILITY_DOMAIN = "NWuj:PHX-AD-1"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provisioner env vars to ensure clean test environment."""
    for key in list(os.environ.keys()):
        if key.startswith(("PROVISIONER_", "OCI_", "METADATA_", "LOGGING_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_storage_client() -> AsyncMock:
    """BlockStorageClient mock whose volumes become available on first poll."""
    client = AsyncMock(spec=BlockStorageClient)
    client.compartment_id = "ocid1.compartment.oc1..test"
    client.tenancy_id = "ocid1.tenancy.oc1..test"
    client.timeout = 1.0
    client.create_volume = AsyncMock(
        return_value=Volume(id=VOLUME_ID, lifecycle_state="PROVISIONING")
    )
    client.get_volume = AsyncMock(
        return_value=Volume(id=VOLUME_ID, lifecycle_state="AVAILABLE")
    )
    client.delete_volume = AsyncMock(return_value=DeleteVolumeResult(status_code=204))
    return client


@pytest.fixture
def mock_metadata() -> AsyncMock:
    """InstanceMetadataClient mock."""
    metadata = AsyncMock(spec=InstanceMetadataClient)
    metadata.get = AsyncMock(
        return_value=InstanceMetadata(region="phx", availability_domain=AVAILABILITY_DOMAIN)
    )
    metadata.close = AsyncMock()
    return metadata


@pytest.fixture
def provisioner_config() -> ProvisionerConfig:
    """Provisioner policy with a 50Gi floor and fast polling."""
    return ProvisionerConfig(
        volume_rounding_enabled=True,
        min_volume_size=50 * GIB,
        timeout=1.0,
        poll_interval=0.0,
        volume_name_prefix="k8s-",
        region_override=None,
    )


@pytest.fixture
def volume_request() -> VolumeRequest:
    return VolumeRequest(
        name="data-claim",
        capacity=100 * GIB,
        access_modes=["ReadWriteOnce"],
        mount_options=["noatime"],
    )


@pytest.fixture
def descriptor() -> VolumeDescriptor:
    return VolumeDescriptor(
        name=VOLUME_ID,
        annotations={OCI_VOLUME_ID: VOLUME_ID},
        capacity=50 * GIB,
        access_modes=["ReadWriteOnce"],
    )


@pytest.fixture
def volume_id() -> str:
    return VOLUME_ID


@pytest.fixture
def availability_domain() -> str:
    return AVAILABILITY_DOMAIN
