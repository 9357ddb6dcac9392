from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ssolink.repos.identity_mappings import IdentityMappingRepository
from ssolink.sso.discord.provider import (
    DEAUTH_PATH,
    DISPLAY_NAME,
    ICON,
    LOGIN_PATH,
    PROFILE_URL_TEMPLATE,
)


@dataclass(frozen=True)
class Association:
    associated: bool
    url: str
    name: str
    icon: str
    deauth_url: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "associated": self.associated,
            "url": self.url,
            "name": self.name,
            "icon": self.icon,
        }
        if self.deauth_url is not None:
            data["deauthUrl"] = self.deauth_url
        return data


async def get_association(
    mappings: IdentityMappingRepository,
    uid: int,
    *,
    base_url: str,
) -> Association:
    """Link status for the account-settings page; reads only the forward field."""
    provider_id = await mappings.get_provider_id(uid)
    if provider_id:
        return Association(
            associated=True,
            url=PROFILE_URL_TEMPLATE.format(id=provider_id),
            deauth_url=f"{base_url}{DEAUTH_PATH}",
            name=DISPLAY_NAME,
            icon=ICON,
        )
    return Association(
        associated=False,
        url=f"{base_url}{LOGIN_PATH}",
        name=DISPLAY_NAME,
        icon=ICON,
    )
