from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

import httpx
from authlib.integrations.starlette_client import OAuth

from ssolink.errors import NotConfigured, ProfileFetchError
from ssolink.repos.plugin_settings import PluginSettingsRepository
from ssolink.settings import Settings
from ssolink.store.base import ObjectStore

PROVIDER_NAME = "discord"
DISPLAY_NAME = "Discord"
PLUGIN_ID = "sso-discord-alt"
ICON = "nbb-none"
SCOPES = ("identify", "email")
USER_ROUTE = "users/@me"
AVATAR_URL_TEMPLATE = "https://cdn.discordapp.com/avatars/{id}/{avatar}.png"
PROFILE_URL_TEMPLATE = "https://discordapp.com/users/{id}"

LOGIN_PATH = f"/auth/{PROVIDER_NAME}"
CALLBACK_PATH = f"/auth/{PROVIDER_NAME}/callback"
DEAUTH_PATH = f"/deauth/{PROVIDER_NAME}"

logger = logging.getLogger("ssolink.sso.discord")


@dataclass(frozen=True)
class ButtonStyle:
    border_color: str = "#7289DA"
    background_color: str = "#7289DA"
    text_color: str = "#FFF"


@dataclass(frozen=True)
class DiscordConfig:
    client_id: str
    client_secret: str
    callback_url: str
    authorize_url: str
    token_url: str
    api_base_url: str


@dataclass(frozen=True)
class LoginStrategy:
    name: str
    url: str
    callback_url: str
    icon: str
    scope: tuple[str, ...]
    display_name: str
    button: ButtonStyle

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["scope"] = list(self.scope)
        return data


def get_discord_config(
    settings: Settings,
    admin_settings: Mapping[str, str] | None = None,
) -> DiscordConfig | None:
    """Admin settings win over the environment; either half missing disables Discord."""
    admin = admin_settings or {}
    client_id = (admin.get("id") or settings.discord_client_id or "").strip()
    env_secret = (
        settings.discord_client_secret.get_secret_value()
        if settings.discord_client_secret is not None
        else ""
    )
    client_secret = (admin.get("secret") or env_secret).strip()
    if not client_id or not client_secret:
        return None

    return DiscordConfig(
        client_id=client_id,
        client_secret=client_secret,
        callback_url=f"{settings.base_url()}{CALLBACK_PATH}",
        authorize_url=settings.discord_authorize_url,
        token_url=settings.discord_token_url,
        api_base_url=settings.discord_api_base_url,
    )


async def load_discord_config(store: ObjectStore, settings: Settings) -> DiscordConfig | None:
    admin_settings = await PluginSettingsRepository(store, PLUGIN_ID).get()
    cfg = get_discord_config(settings, admin_settings)
    if cfg is None:
        logger.warning(
            "Missing %s configuration. Not enabling authentication strategy.", PLUGIN_ID
        )
    return cfg


def require_discord_config(cfg: DiscordConfig | None) -> DiscordConfig:
    if cfg is None:
        raise NotConfigured(f"{DISPLAY_NAME} client id/secret are not configured")
    return cfg


def build_login_strategy(cfg: DiscordConfig | None) -> LoginStrategy | None:
    if cfg is None:
        return None
    return LoginStrategy(
        name=PROVIDER_NAME,
        url=LOGIN_PATH,
        callback_url=CALLBACK_PATH,
        icon=ICON,
        scope=SCOPES,
        display_name=DISPLAY_NAME,
        button=ButtonStyle(),
    )


def build_oauth(cfg: DiscordConfig) -> OAuth:
    oauth = OAuth()
    oauth.register(
        name=PROVIDER_NAME,
        client_id=cfg.client_id,
        client_secret=cfg.client_secret,
        authorize_url=cfg.authorize_url,
        access_token_url=cfg.token_url,
        api_base_url=cfg.api_base_url,
        client_kwargs={"scope": " ".join(SCOPES)},
    )
    return oauth


async def fetch_profile_body(client: Any, token: Mapping[str, object]) -> bytes:
    """GET the current-user object with the access token as a bearer header."""
    try:
        response = await client.get(USER_ROUTE, token=token)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ProfileFetchError(f"failed to fetch user profile: {exc}") from exc
    return bytes(response.content)
