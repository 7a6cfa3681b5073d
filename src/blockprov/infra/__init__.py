"""Provisioner infrastructure layer."""

from blockprov.infra.metadata import InstanceMetadata, InstanceMetadataClient
from blockprov.infra.storage import (
    BlockStorageClient,
    CreateVolumeDetails,
    DeleteVolumeResult,
    LifecycleState,
    OCIBlockStorageClient,
    Volume,
    with_call_timeout,
)

__all__ = [
    # Block storage
    "BlockStorageClient",
    "CreateVolumeDetails",
    "DeleteVolumeResult",
    "LifecycleState",
    "OCIBlockStorageClient",
    "Volume",
    "with_call_timeout",
    # Metadata
    "InstanceMetadata",
    "InstanceMetadataClient",
]
