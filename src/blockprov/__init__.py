"""Block volume provisioner for OCI."""

__version__ = "0.1.0"
