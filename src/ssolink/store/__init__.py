"""Key-value object store.

Persistence shaped as named hashes of string fields, the only primitive the
identity layer relies on. Business rules live in repos and services.
"""

from ssolink.store.base import FieldValue, ObjectStore
from ssolink.store.memory import MemoryObjectStore
from ssolink.store.sql import SqlObjectStore

__all__ = [
    "FieldValue",
    "MemoryObjectStore",
    "ObjectStore",
    "SqlObjectStore",
]
