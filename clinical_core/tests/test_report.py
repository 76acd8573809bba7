# clinical_core/tests/test_report.py

import uuid
from datetime import date, datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

import pytest

from clinical_core.workflows import (
    RESTRICTED_MARKER,
    Actor,
    ClinicalRecord,
    PersonIdentity,
    RelatedIdentities,
    SubjectIdentity,
    build_report,
    report_filename,
)
from clinical_core.workflows.record_types import PRESCRIPTION_TYPE
from clinical_core.workflows.roles import CapabilitySet


UTC = ZoneInfo("UTC")
RECORD_ID = uuid.UUID("6f1c1c0e-0000-4000-8000-000000000001")
CREATED = datetime(2024, 3, 1, 8, 30, 0, tzinfo=dt_timezone.utc)
UPDATED = datetime(2024, 3, 1, 10, 15, 5, tzinfo=dt_timezone.utc)
GENERATED = datetime(2024, 3, 2, 9, 0, 0, tzinfo=dt_timezone.utc)


def _record(**overrides):
    values = dict(
        id=RECORD_ID,
        kind="lab_test",
        title="Complete Blood Count",
        subject_id=1,
        ordering_actor_id=2,
        assigned_actor_id=3,
        status="completed",
        payload="WBC 6.2k/µL",
        notes="Fasting sample",
        created_at=CREATED,
        updated_at=UPDATED,
    )
    values.update(overrides)
    return ClinicalRecord(**values)


IDENTITIES = RelatedIdentities(
    subject=SubjectIdentity(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="555-0100",
        date_of_birth=date(1990, 4, 2),
        gender="female",
        blood_type="O+",
    ),
    ordering_actor=PersonIdentity(name="Dr. Grey"),
    assigned_actor=PersonIdentity(name="Lee Tech"),
)

GENERATOR = Actor(id=9, role="admin", name="Ada Admin")


def test_lab_test_report_layout():
    text = build_report(_record(), IDENTITIES, GENERATOR, GENERATED, tz=UTC)

    assert text == "\n".join(
        [
            "Test Report: Complete Blood Count",
            f"Test ID: {RECORD_ID}",
            "Status: completed",
            "",
            "Patient: Jane Doe",
            "Email: jane@example.com",
            "Phone: 555-0100",
            "DOB: 1990-04-02",
            "Gender: female",
            "Blood Type: O+",
            "",
            "Requesting Doctor: Dr. Grey",
            "Technician: Lee Tech",
            "Requested: 2024-03-01 08:30:00 UTC",
            "Last Updated: 2024-03-01 10:15:05 UTC",
            "",
            "Notes:",
            "Fasting sample",
            "",
            "Results:",
            "WBC 6.2k/µL",
            "",
            "Generated: 2024-03-02 09:00:00 UTC",
            "Generated By: Ada Admin",
        ]
    )


def test_report_is_byte_identical_for_identical_inputs():
    first = build_report(_record(), IDENTITIES, GENERATOR, GENERATED, tz=UTC)
    second = build_report(_record(), IDENTITIES, GENERATOR, GENERATED, tz=UTC)

    assert first.encode("utf-8") == second.encode("utf-8")


@pytest.mark.parametrize("notes", ["", "   ", "\n"])
def test_missing_notes_render_placeholder(notes):
    lines = build_report(_record(notes=notes), IDENTITIES, GENERATOR, GENERATED, tz=UTC).split("\n")

    i = lines.index("Notes:")
    assert lines[i + 1] == "No notes provided"


def test_missing_payload_and_identities_render_placeholders():
    text = build_report(
        _record(payload="", assigned_actor_id=None),
        RelatedIdentities(),
        Actor(id=9, role="admin"),
        GENERATED,
        tz=UTC,
    )
    lines = text.split("\n")

    assert "Patient: -" in lines
    assert "DOB: -" in lines
    assert "Requesting Doctor: -" in lines
    assert "Technician: -" in lines
    assert lines[lines.index("Results:") + 1] == "No results available"
    assert lines[-1] == "Generated By: -"
    # Structure is stable: no line dropped
    full = build_report(_record(), IDENTITIES, GENERATOR, GENERATED, tz=UTC)
    assert len(lines) == len(full.split("\n"))


def test_restricted_marker_is_printed_verbatim():
    record = _record().scoped_to(CapabilitySet())

    text = build_report(record, IDENTITIES, GENERATOR, GENERATED, tz=UTC)

    assert f"Results:\n{RESTRICTED_MARKER}\n" in text
    assert "WBC" not in text


def test_prescription_labels_and_details():
    record = _record(
        kind="prescription",
        title="Amoxicillin",
        status="pending",
        payload="",
        details={"dosage": "500 mg", "frequency": "3x daily", "duration": "7 days"},
    )

    text = build_report(record, IDENTITIES, GENERATOR, GENERATED, record_type=PRESCRIPTION_TYPE, tz=UTC)
    lines = text.split("\n")

    assert lines[0] == "Prescription Report: Amoxicillin"
    assert lines[1] == f"Prescription ID: {RECORD_ID}"
    assert "Prescribing Doctor: Dr. Grey" in lines
    assert "Pharmacist: Lee Tech" in lines
    assert lines.index("Dosage: 500 mg") < lines.index("Instructions: -")
    assert "Prescribed: 2024-03-01 08:30:00 UTC" in lines
    assert lines[lines.index("Dispensing Notes:") + 1] == "No results available"


def test_report_timezone_applies_to_timestamps():
    text = build_report(_record(), IDENTITIES, GENERATOR, GENERATED, tz=ZoneInfo("Africa/Kampala"))

    assert "Requested: 2024-03-01 11:30:00 EAT" in text


def test_download_filename():
    assert report_filename(_record(), IDENTITIES) == "Complete_Blood_Count_Jane_Doe.txt"
    assert report_filename(_record(title="CBC/diff"), RelatedIdentities()) == "CBCdiff__.txt"
