from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from ssolink.errors import InvalidProfile, MalformedResponse
from ssolink.sso.discord.provider import AVATAR_URL_TEMPLATE, PROVIDER_NAME
from ssolink.sso.profile import Profile


class DiscordUserPayload(BaseModel):
    """The subset of Discord's ``users/@me`` object used for sign-in."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    username: str
    avatar: str | None = None
    email: str | None = None
    verified: bool = False


def avatar_url(user_id: str, avatar_hash: str | None) -> str | None:
    if not avatar_hash:
        return None
    return AVATAR_URL_TEMPLATE.format(id=user_id, avatar=avatar_hash)


def normalize_profile(raw: bytes | str | Mapping[str, object]) -> Profile:
    try:
        if isinstance(raw, bytes | bytearray | str):
            payload = DiscordUserPayload.model_validate_json(raw)
        else:
            payload = DiscordUserPayload.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponse(
            f"could not parse Discord profile ({exc.error_count()} error(s))"
        ) from exc

    provider_id = payload.id.strip()
    if not provider_id:
        raise InvalidProfile("Discord profile has an empty id")
    if not payload.username.strip():
        raise InvalidProfile("Discord profile has an empty username")

    email = (payload.email or "").strip().lower() or None
    return Profile(
        provider=PROVIDER_NAME,
        provider_id=provider_id,
        display_name=payload.username,
        email=email,
        email_verified=payload.verified and email is not None,
        avatar_url=avatar_url(provider_id, payload.avatar),
    )
