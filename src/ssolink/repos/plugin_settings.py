from __future__ import annotations

from collections.abc import Mapping

from ssolink.store.base import ObjectStore


class PluginSettingsRepository:
    """Admin-editable settings hash, e.g. ``settings:sso-discord-alt``."""

    def __init__(self, store: ObjectStore, plugin_id: str) -> None:
        self.store = store
        self.key = f"settings:{plugin_id}"

    async def get(self) -> dict[str, str]:
        return await self.store.get_object(self.key)

    async def update(self, values: Mapping[str, str | None]) -> None:
        for field, value in values.items():
            if value is None:
                continue
            if value == "":
                await self.store.delete_object_field(self.key, field)
            else:
                await self.store.set_object_field(self.key, field, value)
