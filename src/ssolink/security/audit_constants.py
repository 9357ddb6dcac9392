from __future__ import annotations

from typing import Literal

# String values used in security-audit logging, kept in one place so event and
# reason names stay consistent between services and routes.


type DiscordAuditEvent = Literal[
    "callback",
    "login",
    "identity_link",
    "identity_relink",
    "email_merge",
    "provision",
    "identity_unlink",
]

type DiscordDeniedReason = Literal[
    # Provider / callback flow
    "not_configured",
    "oauth_error",
    "profile_fetch_failed",
    "malformed_response",
    "invalid_profile",
    # Resolution refusals and failures
    "already_linked_other_user",
    "email_merge_blocked",
    "email_account_linked",
    "account_creation_failed",
    "email_taken",
    "invalid_username",
    "store_error",
    # Deauthorization
    "reverse_owned_by_other_user",
]

type SessionAuditEvent = Literal["logout"]
