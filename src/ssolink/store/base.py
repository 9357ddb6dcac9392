from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

type FieldValue = str | int


class ObjectStore(Protocol):
    """Hash-of-fields persistence with per-call durability.

    Each method is one independent unit of work: there are no multi-call
    transactions and no compare-and-swap. Deleting an absent field or object
    is a no-op. Backends raise ``StoreError`` on failure.
    """

    async def get_object_field(self, key: str, field: str) -> str | None: ...

    async def get_object(self, key: str) -> dict[str, str]: ...

    async def set_object_field(self, key: str, field: str, value: FieldValue) -> None: ...

    async def set_object(self, key: str, values: Mapping[str, FieldValue]) -> None: ...

    async def delete_object_field(self, key: str, field: str) -> None: ...

    async def delete_object(self, key: str) -> None: ...

    async def increment_object_field(self, key: str, field: str, by: int = 1) -> int: ...
