"""Repository layer.

These repositories encapsulate the record shapes kept in the object store.
Keep them focused on persistence/query shaping; business logic lives in services.
"""

from ssolink.repos.identity_mappings import IdentityMappingRepository
from ssolink.repos.plugin_settings import PluginSettingsRepository
from ssolink.repos.users import NewUser, UserRecord, UserRepository

__all__ = [
    "IdentityMappingRepository",
    "NewUser",
    "PluginSettingsRepository",
    "UserRecord",
    "UserRepository",
]
