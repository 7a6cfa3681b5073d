"""Prometheus metrics definitions for the provisioner.

Tracks the volume lifecycle:
- Provision duration and outcome
- Minimum-size rounding
- Compensating deletes after failed provisions
- Teardown deletes
"""

from prometheus_client import Counter, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================
# Block volumes take seconds to minutes to become available
_BUCKETS_PROVISION = (
    1, 2, 5, 10, 20,
    30, 60, 120, 180, 300,
    600,
)  # 11 buckets

# =============================================================================
# Provisioning Metrics
# =============================================================================

PROVISION_DURATION = Histogram(
    "blockprov_provision_duration_seconds",
    "Duration of volume provisioning",
    ["outcome"],  # success, error
    buckets=_BUCKETS_PROVISION,
)

PROVISION_ERRORS = Counter(
    "blockprov_provision_errors_total",
    "Total provisioning errors",
    ["error_code"],  # ErrorCode values, UNEXPECTED for anything else
)

VOLUMES_ROUNDED = Counter(
    "blockprov_volumes_rounded_total",
    "Volumes rounded up to the minimum size",
)

CLEANUP_TOTAL = Counter(
    "blockprov_cleanup_total",
    "Compensating deletes after failed provisioning",
    ["result"],  # deleted, failed
)

# =============================================================================
# Deletion Metrics
# =============================================================================

DELETE_TOTAL = Counter(
    "blockprov_delete_total",
    "Volume delete requests",
    ["result"],  # deleted, not_found, error
)
