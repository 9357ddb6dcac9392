from __future__ import annotations

from collections.abc import Mapping

from ssolink.errors import StoreError
from ssolink.store.base import FieldValue


class MemoryObjectStore:
    """Process-local ObjectStore, used by tests and throwaway dev setups.

    ``writes`` counts mutating calls so callers can assert that a code path
    performed no writes at all.
    """

    def __init__(self) -> None:
        self._objects: dict[str, dict[str, str]] = {}
        self.writes = 0

    async def get_object_field(self, key: str, field: str) -> str | None:
        return self._objects.get(key, {}).get(field)

    async def get_object(self, key: str) -> dict[str, str]:
        return dict(self._objects.get(key, {}))

    async def set_object_field(self, key: str, field: str, value: FieldValue) -> None:
        self.writes += 1
        self._objects.setdefault(key, {})[field] = str(value)

    async def set_object(self, key: str, values: Mapping[str, FieldValue]) -> None:
        self.writes += 1
        obj = self._objects.setdefault(key, {})
        obj.update({field: str(value) for field, value in values.items()})

    async def delete_object_field(self, key: str, field: str) -> None:
        self.writes += 1
        obj = self._objects.get(key)
        if obj is None:
            return
        obj.pop(field, None)
        if not obj:
            del self._objects[key]

    async def delete_object(self, key: str) -> None:
        self.writes += 1
        self._objects.pop(key, None)

    async def increment_object_field(self, key: str, field: str, by: int = 1) -> int:
        self.writes += 1
        obj = self._objects.setdefault(key, {})
        raw = obj.get(field, "0")
        try:
            current = int(raw)
        except ValueError as exc:
            raise StoreError(f"{key}.{field} is not an integer") from exc
        obj[field] = str(current + by)
        return current + by
