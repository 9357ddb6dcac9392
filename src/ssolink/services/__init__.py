from ssolink.services.associations import Association, get_association
from ssolink.services.deauthorization import deauthorize
from ssolink.services.identity_resolution import (
    IdentityResolution,
    IdentityResolver,
    ResolutionOutcome,
    username_from_display_name,
)
from ssolink.services.link_policy import EmailMergePolicy, LinkPolicy, SessionAttachPolicy

__all__ = [
    "Association",
    "EmailMergePolicy",
    "IdentityResolution",
    "IdentityResolver",
    "LinkPolicy",
    "ResolutionOutcome",
    "SessionAttachPolicy",
    "deauthorize",
    "get_association",
    "username_from_display_name",
]
