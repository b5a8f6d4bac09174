"""Tools module - clients for external data providers."""

from .mast_client import MASTClient

__all__ = ['MASTClient']
