from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """Provider-agnostic view of a verified external identity.

    Built once per login attempt; ``provider_id`` is the durable external key
    and is never empty.
    """

    provider: str
    provider_id: str
    display_name: str
    email: str | None = None
    email_verified: bool = False
    avatar_url: str | None = None
