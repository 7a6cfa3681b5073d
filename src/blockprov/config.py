"""Provisioner configuration using pydantic-settings.

Configuration hierarchy:
- StorageConfig: OCI SDK authentication and identity
- ProvisionerConfig: Volume provisioning policy
- MetadataConfig: Instance metadata service access
- LoggingConfig: Logging behavior
- Settings: Main config aggregating all sub-configs

Example: PROVISIONER_MIN_VOLUME_SIZE=50Gi
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockprov.sizes import parse_quantity


class StorageConfig(BaseSettings):
    """OCI block storage client configuration."""

    model_config = SettingsConfigDict(env_prefix="OCI_")

    # Authentication
    config_file: str = Field(default="~/.oci/config", description="OCI SDK config file")
    profile: str = Field(default="DEFAULT", description="Profile in the OCI config file")
    use_instance_principals: bool = Field(
        default=False,
        description="Authenticate with instance principals instead of a config file",
    )

    # Identity
    compartment_id: str = Field(default="", description="Compartment OCID for new volumes")
    tenancy_id: str = Field(default="", description="Tenancy OCID")

    # Timeouts
    call_timeout: float = Field(default=60.0, description="Per-call API timeout (seconds)")


class ProvisionerConfig(BaseSettings):
    """Volume provisioning policy.

    Shared read-only by every provisioning operation.
    """

    model_config = SettingsConfigDict(env_prefix="PROVISIONER_", populate_by_name=True)

    volume_rounding_enabled: bool = Field(
        default=True,
        description="Round volumes below min_volume_size up to the minimum",
    )
    min_volume_size: int = Field(
        default=50 * 1024**3,
        description="Minimum volume size in bytes (quantity strings like 50Gi accepted)",
    )
    timeout: float = Field(
        default=300.0,
        description="Overall timeout for a volume to become available (seconds)",
    )
    poll_interval: float = Field(default=5.0, description="Volume state poll interval (seconds)")
    volume_name_prefix: str = Field(default="", description="Display name prefix for new volumes")

    # Consulted before the instance metadata service
    region_override: str | None = Field(default=None, validation_alias="OCI_SHORT_REGION")

    @field_validator("min_volume_size", mode="before")
    @classmethod
    def _parse_min_volume_size(cls, value: str | int) -> int:
        return parse_quantity(value)


class MetadataConfig(BaseSettings):
    """Instance metadata service configuration."""

    model_config = SettingsConfigDict(env_prefix="METADATA_")

    endpoint: str = Field(
        default="http://169.254.169.254/opc/v1",
        description="Instance metadata service base URL",
    )
    timeout: float = Field(default=10.0, description="Metadata request timeout (seconds)")


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats for different environments:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(
        default="oci-volume-provisioner",
        description="Service identifier in logs",
    )


class Settings(BaseSettings):
    """Main configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(env_nested_delimiter="__")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    provisioner: ProvisionerConfig = Field(default_factory=ProvisionerConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
