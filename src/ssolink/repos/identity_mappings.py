from __future__ import annotations

from ssolink.repos.users import UserRepository, parse_uid
from ssolink.store.base import ObjectStore


class IdentityMappingRepository:
    """Bidirectional ``provider id <-> uid`` mapping for one provider.

    The forward half is the ``<provider>Id`` field on the user record, the
    reverse half is the ``<provider>Id:uid`` hash keyed by provider id. The two
    halves are separate writes; ``link`` writes forward first and the unlink
    helpers are expected to run reverse first, so an interrupted sequence can
    only leave a forward field without its reverse entry.
    """

    def __init__(self, store: ObjectStore, users: UserRepository, provider: str) -> None:
        self.store = store
        self.users = users
        self.provider = provider

    @property
    def forward_field(self) -> str:
        return f"{self.provider}Id"

    @property
    def reverse_key(self) -> str:
        return f"{self.provider}Id:uid"

    async def get_uid(self, provider_id: str) -> int | None:
        return parse_uid(await self.store.get_object_field(self.reverse_key, provider_id))

    async def get_provider_id(self, uid: int) -> str | None:
        value = await self.users.get_user_field(uid, self.forward_field)
        return value or None

    async def link(self, uid: int, provider_id: str) -> None:
        await self.users.set_user_field(uid, self.forward_field, provider_id)
        await self.store.set_object_field(self.reverse_key, provider_id, uid)

    async def remove_reverse(self, provider_id: str) -> None:
        await self.store.delete_object_field(self.reverse_key, provider_id)

    async def remove_forward(self, uid: int) -> None:
        await self.users.delete_user_field(uid, self.forward_field)
