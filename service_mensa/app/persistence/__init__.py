"""
Persistence package.

Entities are kept in dictionary-backed repositories keyed by UUID and
loaded from a JSON seed document at start-up. Nothing here is exposed for
writing over HTTP.
"""

from .memory import DataStore, EntityLookup, InMemoryRepository, build_data_store, load_seed_data

__all__ = [
    "DataStore",
    "EntityLookup",
    "InMemoryRepository",
    "build_data_store",
    "load_seed_data",
]
