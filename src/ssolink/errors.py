"""Errors raised while resolving, linking and unlinking provider identities.

Every error carries a short machine-readable ``reason`` that routes put into
redirects and the security audit log.
"""

from __future__ import annotations


class SsoLinkError(Exception):
    reason = "error"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class MalformedResponse(SsoLinkError):
    """The provider's profile body could not be parsed into a profile."""

    reason = "malformed_response"


class InvalidProfile(MalformedResponse):
    """The profile parsed but lacks a usable provider identifier."""

    reason = "invalid_profile"


class StoreError(SsoLinkError):
    """A read or write against the object store failed."""

    reason = "store_error"


class AccountCreationError(SsoLinkError):
    reason = "account_creation_failed"


class NotConfigured(SsoLinkError):
    reason = "not_configured"


class IdentityResolutionRefused(SsoLinkError):
    """Base for policy refusals: nothing was written."""

    reason = "refused"


class IdentityAlreadyLinked(IdentityResolutionRefused):
    reason = "already_linked_other_user"


class EmailMergeBlocked(IdentityResolutionRefused):
    reason = "email_merge_blocked"


class EmailAccountLinked(IdentityResolutionRefused):
    """The account owning the email is already linked to a different identity."""

    reason = "email_account_linked"


class ProfileFetchError(SsoLinkError):
    """The provider's current-user endpoint could not be reached."""

    reason = "profile_fetch_failed"
