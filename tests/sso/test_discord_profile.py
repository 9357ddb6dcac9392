from __future__ import annotations

import json

import pytest

from ssolink.errors import InvalidProfile, MalformedResponse
from ssolink.sso.discord.profile import normalize_profile


def _body(**fields: object) -> bytes:
    payload: dict[str, object] = {
        "id": "80351110224678912",
        "username": "Nelly",
        "discriminator": "1337",
        "avatar": "8342729096ea3675442027381ff50dfe",
        "verified": True,
        "email": "Nelly@Discord.com",
    }
    payload.update(fields)
    return json.dumps(payload).encode()


def test_normalize_profile_maps_discord_user_fields() -> None:
    profile = normalize_profile(_body())

    assert profile.provider == "discord"
    assert profile.provider_id == "80351110224678912"
    assert profile.display_name == "Nelly"
    assert profile.email == "nelly@discord.com"
    assert profile.email_verified is True
    assert profile.avatar_url == (
        "https://cdn.discordapp.com/avatars/80351110224678912/"
        "8342729096ea3675442027381ff50dfe.png"
    )


def test_normalize_profile_without_avatar_or_email() -> None:
    profile = normalize_profile(_body(avatar=None, email=None, verified=True))

    assert profile.avatar_url is None
    assert profile.email is None
    assert profile.email_verified is False


def test_normalize_profile_accepts_decoded_mapping_and_numeric_id() -> None:
    profile = normalize_profile({"id": 42, "username": "num"})

    assert profile.provider_id == "42"
    assert profile.email_verified is False


@pytest.mark.parametrize(
    "raw",
    [
        b"<html>502 Bad Gateway</html>",
        "[1, 2, 3]",
        b"{}",
        json.dumps({"id": "1"}).encode(),
    ],
)
def test_normalize_profile_rejects_unusable_bodies(raw: bytes | str) -> None:
    with pytest.raises(MalformedResponse):
        normalize_profile(raw)


@pytest.mark.parametrize("fields", [{"id": ""}, {"id": "   "}, {"username": " "}])
def test_normalize_profile_rejects_blank_identity_fields(fields: dict[str, object]) -> None:
    with pytest.raises(InvalidProfile):
        normalize_profile(_body(**fields))
