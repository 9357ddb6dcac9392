from __future__ import annotations

import logging
from collections.abc import Mapping

from ssolink.logging_config import log_security_audit_event
from ssolink.security.audit_constants import (
    DiscordAuditEvent,
    DiscordDeniedReason,
    SessionAuditEvent,
)


def _emit_security_audit(
    *,
    namespace: str,
    event: str,
    outcome: str,
    level: int = logging.INFO,
    reason: str | None = None,
    actor_uid: int | None = None,
    fields: Mapping[str, object] | None = None,
) -> None:
    payload: dict[str, object] = {}
    if actor_uid is not None:
        payload["actor_uid"] = actor_uid
    if fields:
        payload.update(fields)

    if reason is not None:
        payload["reason"] = reason

    log_security_audit_event(
        audit_event=f"{namespace}.{event}",
        outcome=outcome,
        level=level,
        **payload,
    )


def audit_discord_denied(
    *,
    event: DiscordAuditEvent,
    reason: DiscordDeniedReason | str,
    actor_uid: int | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="auth.discord",
        event=event,
        outcome="denied",
        level=logging.WARNING,
        reason=reason,
        actor_uid=actor_uid,
        fields=fields,
    )


def audit_discord_success(
    *,
    event: DiscordAuditEvent,
    actor_uid: int | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="auth.discord",
        event=event,
        outcome="success",
        actor_uid=actor_uid,
        fields=fields,
    )


def audit_session_success(
    *,
    event: SessionAuditEvent,
    actor_uid: int | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="auth",
        event=event,
        outcome="success",
        actor_uid=actor_uid,
        fields=fields,
    )
