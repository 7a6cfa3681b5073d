"""OCI block volume provisioner."""

from __future__ import annotations

from blockprov.config import Settings, get_settings
from blockprov.infra.metadata import InstanceMetadataClient
from blockprov.infra.storage import BlockStorageClient, OCIBlockStorageClient
from blockprov.models import VolumeDescriptor, VolumeRequest
from blockprov.provisioner.deletion import VolumeDeleter
from blockprov.provisioner.poller import AvailabilityPoller, PollOutcome, PollState
from blockprov.provisioner.provision import VolumeProvisioner


class BlockProvisioner:
    """Block volume provisioner combining provisioning and deletion.

    The storage client, metadata client and configuration are shared by
    every operation and never mutated per request.
    """

    def __init__(
        self,
        settings: Settings,
        client: BlockStorageClient,
        metadata: InstanceMetadataClient,
    ) -> None:
        self._settings = settings
        self._metadata = metadata

        self.provisioner = VolumeProvisioner(settings.provisioner, client, metadata)
        self.deleter = VolumeDeleter(client)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> BlockProvisioner:
        settings = settings or get_settings()
        return cls(
            settings,
            OCIBlockStorageClient.from_config(settings.storage),
            InstanceMetadataClient(settings.metadata.endpoint, settings.metadata.timeout),
        )

    async def provision(
        self, request: VolumeRequest, availability_domain: str
    ) -> VolumeDescriptor:
        return await self.provisioner.provision(request, availability_domain)

    async def delete(self, descriptor: VolumeDescriptor) -> None:
        await self.deleter.delete(descriptor)

    async def close(self) -> None:
        await self._metadata.close()


__all__ = [
    "AvailabilityPoller",
    "BlockProvisioner",
    "PollOutcome",
    "PollState",
    "VolumeDeleter",
    "VolumeProvisioner",
]
