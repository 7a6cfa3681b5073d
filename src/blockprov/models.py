"""Volume request and descriptor models.

VolumeRequest is what the orchestrator asks for; VolumeDescriptor is what a
successful provision hands back. The descriptor carries the provider volume
OCID in its annotations so that deletion can find the volume later.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

# Annotation holding the provider volume OCID on a descriptor
OCI_VOLUME_ID = "ociVolumeID"
# Claim annotation selecting a volume backup to restore from
OCI_VOLUME_BACKUP_ID = "volume.beta.kubernetes.io/oci-volume-source"

# Storage class parameters
FS_TYPE = "fsType"
VOLUME_ROUNDING_UP_ENABLED = "volumeRoundingUpEnabled"

DEFAULT_FS_TYPE = "ext4"

# Topology labels
LABEL_ZONE_REGION = "failure-domain.beta.kubernetes.io/region"
LABEL_ZONE_FAILURE_DOMAIN = "failure-domain.beta.kubernetes.io/zone"

PROVISIONER_DRIVER = "oracle/oci"

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class AccessMode(StrEnum):
    READ_WRITE_ONCE = "ReadWriteOnce"
    READ_ONLY_MANY = "ReadOnlyMany"
    READ_WRITE_MANY = "ReadWriteMany"


class ReclaimPolicy(StrEnum):
    DELETE = "Delete"
    RETAIN = "Retain"
    RECYCLE = "Recycle"


def parse_bool(value: str) -> bool | None:
    """Parse a boolean parameter string. Returns None if unparseable."""
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    return None


class VolumeRequest(BaseModel):
    """A request for durable storage.

    Access modes are kept as plain strings so that unsupported modes reach
    provisioner validation instead of failing model construction.
    """

    name: str
    capacity: int | None = None  # bytes
    access_modes: list[str] = Field(default_factory=list)
    parameters: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    mount_options: list[str] = Field(default_factory=list)
    reclaim_policy: ReclaimPolicy = ReclaimPolicy.DELETE

    model_config = {"frozen": True}

    @property
    def fs_type(self) -> str:
        return self.parameters.get(FS_TYPE, DEFAULT_FS_TYPE)

    @property
    def backup_id(self) -> str | None:
        return self.annotations.get(OCI_VOLUME_BACKUP_ID)

    @property
    def rounding_enabled(self) -> bool:
        """Per-request rounding switch.

        Only an explicit, parseable false disables rounding.
        """
        value = self.parameters.get(VOLUME_ROUNDING_UP_ENABLED)
        if value is None:
            return True
        return parse_bool(value) is not False


class VolumeDescriptor(BaseModel):
    """A provisioned volume, owned by the caller once returned."""

    name: str
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    capacity: int  # bytes
    access_modes: list[str] = Field(default_factory=list)
    reclaim_policy: ReclaimPolicy = ReclaimPolicy.DELETE
    mount_options: list[str] = Field(default_factory=list)
    fs_type: str = DEFAULT_FS_TYPE
    driver: str = PROVISIONER_DRIVER

    model_config = {"frozen": True}

    @property
    def volume_id(self) -> str | None:
        return self.annotations.get(OCI_VOLUME_ID)
