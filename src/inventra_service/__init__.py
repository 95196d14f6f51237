"""Inventra - multi-tenant asset and license inventory service."""

__version__ = "0.1.0"
