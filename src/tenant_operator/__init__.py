"""Kubernetes operator reconciling cloud robotics tenants."""

__version__ = "0.1.0"
