# clinical_core/signals.py
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.dispatch import receiver

from clinical_core.models import AuditLog, WorkflowTransition
from clinical_core.workflows.events import record_changed, record_transitioned

logger = logging.getLogger(__name__)

User = get_user_model()


# ===============================================================
# Utilities
# ===============================================================
def _user_for(actor):
    """Actor ids are auth user ids; unknown ids audit as system."""
    if actor is None or actor.id is None:
        return None
    return User.objects.filter(pk=actor.id).first()


def _safe_username(user) -> str:
    if not user:
        return "system"
    return user.get_username()


# ===============================================================
# WORKFLOW TRANSITIONS
# ===============================================================
@receiver(record_transitioned)
def persist_transition(sender, record, actor, from_status, to_status, **kwargs):
    """
    Side effects of an accepted status change:
    - timeline row (WorkflowTransition)
    - audit log entry
    - optional email notification
    """
    user = _user_for(actor)

    transition = WorkflowTransition.objects.create(
        kind=record.kind,
        record_id=record.id,
        from_status=from_status,
        to_status=to_status,
        performed_by=user,
        role=actor.role if actor else "",
    )

    AuditLog.objects.create(
        user=user,
        action=(
            f"WORKFLOW {record.kind.upper()} {record.id}: "
            f"{from_status} -> {to_status}"
        ),
        details={
            "kind": record.kind,
            "record_id": str(record.id),
            "from": from_status,
            "to": to_status,
            "role": transition.role,
        },
    )

    _notify(transition)


def _notify(transition: WorkflowTransition) -> None:
    if not getattr(settings, "WORKFLOW_EMAIL_NOTIFICATIONS", False):
        return

    recipients = getattr(settings, "WORKFLOW_NOTIFY_EMAILS", None)
    if not recipients:
        return

    subject = (
        f"[Clinic] {transition.kind.upper()} {transition.record_id} "
        f"{transition.from_status} -> {transition.to_status}"
    )

    body = "\n".join(
        [
            "Workflow transition recorded.",
            "",
            f"Kind: {transition.kind}",
            f"Record ID: {transition.record_id}",
            f"From: {transition.from_status}",
            f"To: {transition.to_status}",
            f"By: {_safe_username(transition.performed_by)} ({transition.role or 'n/a'})",
            f"At: {transition.created_at}",
        ]
    )

    sent = send_mail(
        subject=subject,
        message=body,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=list(recipients),
        fail_silently=True,
    )
    if not sent:
        logger.warning("Transition notification not delivered for %s", transition.record_id)


# ===============================================================
# CREATE / PAYLOAD / ASSIGNMENT audit
# ===============================================================
@receiver(record_changed)
def audit_record_change(sender, record, actor, action, **kwargs):
    # Payload content stays out of the audit trail.
    details = {
        "kind": record.kind,
        "record_id": str(record.id),
        "status": record.status,
        "role": actor.role if actor else "",
    }
    if action == "assigned":
        details["assigned_actor_id"] = record.assigned_actor_id

    AuditLog.objects.create(
        user=_user_for(actor),
        action=f"{action.upper()} {record.kind.upper()} {record.id}",
        details=details,
    )
