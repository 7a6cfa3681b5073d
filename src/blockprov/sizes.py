"""Volume size arithmetic.

Block volumes are allocated in whole MiB. Requested capacities are rounded up
to the allocation unit, and a configurable minimum size can be enforced.

Usage:
    from blockprov.sizes import MIB, apply_minimum_floor, compute_allocation_units

    size_mb = compute_allocation_units(capacity, MIB)
"""

import math
import re

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

_BINARY_SUFFIXES = {
    "Ki": KIB,
    "Mi": MIB,
    "Gi": GIB,
    "Ti": 1024 * GIB,
    "Pi": 1024**5,
    "Ei": 1024**6,
}

_DECIMAL_SUFFIXES = {
    "": 1,
    "k": 10**3,
    "M": 10**6,
    "G": 10**9,
    "T": 10**12,
    "P": 10**15,
    "E": 10**18,
}

_QUANTITY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([A-Za-z]*)\s*$")


def compute_allocation_units(requested_bytes: int, unit_size_bytes: int) -> int:
    """Ceiling-divide a byte count into allocation units.

    Never under-allocates: ``units * unit_size_bytes >= requested_bytes``.
    """
    if unit_size_bytes <= 0:
        raise ValueError(f"unit size must be positive, got {unit_size_bytes}")
    return (requested_bytes + unit_size_bytes - 1) // unit_size_bytes


def apply_minimum_floor(
    requested: int,
    minimum: int,
    rounding_enabled_globally: bool,
    rounding_enabled_for_request: bool,
) -> tuple[int, bool]:
    """Raise a capacity to the minimum volume size when rounding is allowed.

    Rounding must be enabled both globally and for the request. When either
    is disabled the requested capacity passes through unchanged, even if it
    is below the minimum.

    Returns:
        (effective capacity, whether the capacity was rounded up)
    """
    if rounding_enabled_globally and rounding_enabled_for_request and requested < minimum:
        return minimum, True
    return requested, False


def parse_quantity(value: str | int) -> int:
    """Parse a Kubernetes-style quantity ("50Gi", "1G", "1024") into bytes.

    Fractional results are rounded up to the next byte.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"quantity must not be negative: {value}")
        return value

    match = _QUANTITY_RE.match(value)
    if not match:
        raise ValueError(f"invalid quantity: {value!r}")

    number, suffix = match.groups()
    multiplier = _BINARY_SUFFIXES.get(suffix) or _DECIMAL_SUFFIXES.get(suffix)
    if multiplier is None:
        raise ValueError(f"unknown quantity suffix {suffix!r} in {value!r}")

    if "." in number:
        return math.ceil(float(number) * multiplier)
    return int(number) * multiplier
