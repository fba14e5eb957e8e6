"""
Datastore package.

DataStore is the interface the pipeline reads and writes through;
MemoryStore is the snapshot-file backed implementation used by the CLI.
"""

from cms_anonymize.store.base_store import DataStore
from cms_anonymize.store.memory_store import MemoryStore

__all__ = ['DataStore', 'MemoryStore']
