# clinical_core/workflows/report.py
"""
Plain-text audit report for a clinical record.

Used by print, download and clipboard actions, so the output must be
byte-identical for identical inputs. Section order is fixed:

    header, subject, order/assignment, notes, payload, footer

Every field renders a placeholder when missing; no line is ever dropped.
The builder does not check permissions. It prints whatever payload it is
given, including the restricted marker.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

from .entities import Actor, ClinicalRecord, RelatedIdentities
from .record_types import RecordType, get_record_type


PLACEHOLDER = "-"
NO_NOTES = "No notes provided"
NO_RESULTS = "No results available"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def _text(value) -> str:
    s = "" if value is None else str(value).strip()
    return s or PLACEHOLDER


def _block(value: Optional[str], placeholder: str) -> str:
    s = (value or "").strip("\n")
    return s if s.strip() else placeholder


def _timestamp(value: Optional[datetime], tz: ZoneInfo) -> str:
    if value is None:
        return PLACEHOLDER
    if timezone.is_aware(value):
        value = value.astimezone(tz)
    return value.strftime(TIMESTAMP_FORMAT).strip()


def _date(value: Optional[date]) -> str:
    if value is None:
        return PLACEHOLDER
    return value.isoformat()


def report_timezone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or getattr(settings, "CLINICAL_REPORT_TIMEZONE", "UTC") or "UTC")


def build_report(
    record: ClinicalRecord,
    identities: Optional[RelatedIdentities],
    generating_actor: Actor,
    generated_at: datetime,
    record_type: Optional[RecordType] = None,
    tz: Optional[ZoneInfo] = None,
) -> str:
    rt = record_type or get_record_type(record.kind)
    tz = tz or report_timezone()
    ids = identities or RelatedIdentities()

    subject = ids.subject
    ordering = ids.ordering_actor
    assigned = ids.assigned_actor

    lines: List[str] = [
        f"{rt.report_title}: {_text(record.title)}",
        f"{rt.id_label}: {_text(record.id)}",
        f"Status: {_text(record.status)}",
        "",
        f"Patient: {_text(subject.full_name if subject else None)}",
        f"Email: {_text(subject.email if subject else None)}",
        f"Phone: {_text(subject.phone if subject else None)}",
        f"DOB: {_date(subject.date_of_birth if subject else None)}",
        f"Gender: {_text(subject.gender if subject else None)}",
        f"Blood Type: {_text(subject.blood_type if subject else None)}",
        "",
        f"{rt.ordering_label}: {_text(ordering.name if ordering else None)}",
        f"{rt.assigned_label}: {_text(assigned.name if assigned else None)}",
    ]

    for key, label in rt.detail_fields:
        lines.append(f"{label}: {_text(record.details.get(key))}")

    lines.extend(
        [
            f"{rt.created_label}: {_timestamp(record.created_at, tz)}",
            f"Last Updated: {_timestamp(record.updated_at, tz)}",
            "",
            "Notes:",
            _block(record.notes, NO_NOTES),
            "",
            f"{rt.payload_label}:",
            _block(record.payload, NO_RESULTS),
            "",
            f"Generated: {_timestamp(generated_at, tz)}",
            f"Generated By: {_text(generating_actor.name)}",
        ]
    )

    return "\n".join(lines)


def report_filename(record: ClinicalRecord, identities: Optional[RelatedIdentities]) -> str:
    """
    "<title>_<first>_<last>.txt", falling back to the record kind.
    """
    subject = identities.subject if identities else None
    parts = [
        record.title or get_record_type(record.kind).report_title,
        subject.first_name if subject else "",
        subject.last_name if subject else "",
    ]
    stem = "_".join(p.strip().replace(" ", "_") for p in parts)
    stem = "".join(c for c in stem if c.isalnum() or c in "_-.")
    return f"{stem or 'report'}.txt"


__all__ = [
    "PLACEHOLDER",
    "NO_NOTES",
    "NO_RESULTS",
    "build_report",
    "report_filename",
    "report_timezone",
]
