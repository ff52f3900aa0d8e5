"""
Data Ingestion Module
"""
from .client import StorefrontAPIError, StorefrontClient
from .loader import SnapshotInputLoader, SnapshotInputs
from .sources import CatalogSource, InMemoryStorefront, OrderSource

__all__ = [
    "CatalogSource",
    "InMemoryStorefront",
    "OrderSource",
    "SnapshotInputLoader",
    "SnapshotInputs",
    "StorefrontAPIError",
    "StorefrontClient",
]
