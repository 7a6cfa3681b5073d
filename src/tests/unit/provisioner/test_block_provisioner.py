"""Unit tests for the BlockProvisioner facade."""

from unittest.mock import AsyncMock, MagicMock, patch

from blockprov.config import MetadataConfig, ProvisionerConfig, Settings
from blockprov.infra.metadata import InstanceMetadataClient
from blockprov.models import VolumeDescriptor, VolumeRequest
from blockprov.provisioner import BlockProvisioner, VolumeDeleter, VolumeProvisioner


class TestBlockProvisioner:
    """Tests for BlockProvisioner."""

    def _make(
        self,
        provisioner_config: ProvisionerConfig,
        client: AsyncMock,
        metadata: AsyncMock,
    ) -> BlockProvisioner:
        return BlockProvisioner(Settings(provisioner=provisioner_config), client, metadata)

    def test_components(
        self,
        provisioner_config: ProvisionerConfig,
        mock_storage_client: AsyncMock,
        mock_metadata: AsyncMock,
    ) -> None:
        block = self._make(provisioner_config, mock_storage_client, mock_metadata)

        assert isinstance(block.provisioner, VolumeProvisioner)
        assert isinstance(block.deleter, VolumeDeleter)

    async def test_provision_then_delete(
        self,
        provisioner_config: ProvisionerConfig,
        mock_storage_client: AsyncMock,
        mock_metadata: AsyncMock,
        volume_request: VolumeRequest,
        volume_id: str,
        availability_domain: str,
    ) -> None:
        block = self._make(provisioner_config, mock_storage_client, mock_metadata)

        descriptor = await block.provision(volume_request, availability_domain)
        mock_storage_client.delete_volume.assert_not_called()

        await block.delete(descriptor)

        mock_storage_client.delete_volume.assert_awaited_once_with(volume_id)

    async def test_delete_delegates(
        self,
        provisioner_config: ProvisionerConfig,
        mock_storage_client: AsyncMock,
        mock_metadata: AsyncMock,
        descriptor: VolumeDescriptor,
        volume_id: str,
    ) -> None:
        block = self._make(provisioner_config, mock_storage_client, mock_metadata)

        await block.delete(descriptor)

        mock_storage_client.delete_volume.assert_awaited_once_with(volume_id)

    async def test_close_closes_metadata_client(
        self,
        provisioner_config: ProvisionerConfig,
        mock_storage_client: AsyncMock,
        mock_metadata: AsyncMock,
    ) -> None:
        block = self._make(provisioner_config, mock_storage_client, mock_metadata)

        await block.close()

        mock_metadata.close.assert_awaited_once()

    def test_from_settings(self) -> None:
        settings = Settings(metadata=MetadataConfig(endpoint="http://metadata.test/opc/v1"))
        client = MagicMock()
        client.compartment_id = "ocid1.compartment.oc1..test"
        client.tenancy_id = "ocid1.tenancy.oc1..test"
        client.timeout = 60.0

        with patch(
            "blockprov.provisioner.OCIBlockStorageClient.from_config", return_value=client
        ) as from_config:
            block = BlockProvisioner.from_settings(settings)

        from_config.assert_called_once_with(settings.storage)
        assert isinstance(block._metadata, InstanceMetadataClient)
        assert block._metadata._endpoint == "http://metadata.test/opc/v1"
