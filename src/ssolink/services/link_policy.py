from __future__ import annotations

import enum
from dataclasses import dataclass, field

from ssolink.settings import Settings
from ssolink.sso.profile import Profile


class SessionAttachPolicy(enum.StrEnum):
    # Refuse to attach an identity that already belongs to another account.
    reject = "reject"
    # Move the identity: clear the previous owner's forward field, then attach.
    relink = "relink"


@dataclass(frozen=True)
class EmailMergePolicy:
    allow: bool = True
    require_verified: bool = True

    def permits(self, profile: Profile) -> bool:
        if not self.allow:
            return False
        if self.require_verified and not profile.email_verified:
            return False
        return True


@dataclass(frozen=True)
class LinkPolicy:
    session_attach: SessionAttachPolicy = SessionAttachPolicy.reject
    email_merge: EmailMergePolicy = field(default_factory=EmailMergePolicy)

    @classmethod
    def from_settings(cls, settings: Settings) -> LinkPolicy:
        return cls(
            session_attach=SessionAttachPolicy(settings.session_attach_policy),
            email_merge=EmailMergePolicy(
                allow=settings.allow_email_merge,
                require_verified=settings.require_verified_email_for_merge,
            ),
        )
