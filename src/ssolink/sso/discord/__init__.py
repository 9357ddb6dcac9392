from ssolink.sso.discord.profile import normalize_profile
from ssolink.sso.discord.provider import (
    DISPLAY_NAME,
    PLUGIN_ID,
    PROVIDER_NAME,
    DiscordConfig,
    LoginStrategy,
    build_login_strategy,
    build_oauth,
    fetch_profile_body,
    get_discord_config,
    load_discord_config,
)

__all__ = [
    "DISPLAY_NAME",
    "PLUGIN_ID",
    "PROVIDER_NAME",
    "DiscordConfig",
    "LoginStrategy",
    "build_login_strategy",
    "build_oauth",
    "fetch_profile_body",
    "get_discord_config",
    "load_discord_config",
    "normalize_profile",
]
