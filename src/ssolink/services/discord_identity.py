from __future__ import annotations

from ssolink.repos.identity_mappings import IdentityMappingRepository
from ssolink.repos.users import UserRepository
from ssolink.services.identity_resolution import IdentityResolver
from ssolink.services.link_policy import LinkPolicy
from ssolink.settings import Settings
from ssolink.sso.discord.provider import PROVIDER_NAME
from ssolink.store.base import ObjectStore


def build_identity_mappings(store: ObjectStore) -> IdentityMappingRepository:
    return IdentityMappingRepository(store, UserRepository(store), PROVIDER_NAME)


def build_identity_resolver(store: ObjectStore, settings: Settings) -> IdentityResolver:
    mappings = build_identity_mappings(store)
    return IdentityResolver(
        mappings.users,
        mappings,
        policy=LinkPolicy.from_settings(settings),
    )
