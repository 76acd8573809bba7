# clinical_core/tests/test_rules.py

import pytest

from clinical_core.workflows import (
    ForbiddenError,
    IllegalTransitionError,
    IncompleteRecordError,
    UnknownRoleError,
    allowed_next_states,
    allowed_transitions,
    check_transition,
    required_roles,
    validate_transition,
    workflow_definition,
)
from clinical_core.workflows.record_types import LAB_TEST_TYPE, PRESCRIPTION_TYPE


def _check(current, target, role, payload="WBC 6.2", record_type=LAB_TEST_TYPE):
    return check_transition(
        record_type=record_type,
        current=current,
        target=target,
        role=role,
        payload=payload,
        record_id="r-1",
    )


# =============================================================
# Status graph
# =============================================================

@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", "in_progress"),
        ("pending", "completed"),
        ("pending", "cancelled"),
        ("in_progress", "completed"),
        ("in_progress", "cancelled"),
        ("completed", "pending"),
    ],
)
def test_legal_edges(current, target):
    assert validate_transition(current, target) is True


@pytest.mark.parametrize(
    "current,target",
    [
        ("in_progress", "pending"),
        ("completed", "in_progress"),
        ("completed", "cancelled"),
        ("cancelled", "pending"),
        ("cancelled", "completed"),
        ("pending", "archived"),
    ],
)
def test_illegal_edges_name_source_and_target(current, target):
    with pytest.raises(IllegalTransitionError) as exc:
        validate_transition(current, target, record_id="r-1")

    assert exc.value.context["source"] == current
    assert exc.value.context["target"] == target


@pytest.mark.parametrize("status", ["pending", "in_progress", "completed", "cancelled"])
def test_same_status_is_noop(status):
    assert validate_transition(status, status) is False


def test_pending_never_reached_again_except_by_reversal():
    for status in ("in_progress", "cancelled"):
        assert "pending" not in allowed_next_states(status)
    assert allowed_next_states("completed") == ["pending"]


# =============================================================
# Guards
# =============================================================

@pytest.mark.parametrize("role", ["admin", "laboratory_technician", "doctor", "nurse"])
@pytest.mark.parametrize("payload", ["", "   \n", None])
def test_completion_requires_payload_for_every_role(role, payload):
    with pytest.raises(IncompleteRecordError):
        _check("pending", "completed", role, payload=payload)


def test_completion_with_payload_by_assigned_role():
    assert _check("in_progress", "completed", "laboratory_technician") is True


def test_doctor_cannot_change_status():
    with pytest.raises(ForbiddenError) as exc:
        _check("pending", "in_progress", "doctor")

    assert exc.value.context["capability"] == "can_change_status"
    assert exc.value.context["role"] == "doctor"


@pytest.mark.parametrize("role", ["laboratory_technician", "doctor", "pharmacist", "nurse", "receptionist"])
def test_reversal_is_admin_only(role):
    with pytest.raises(ForbiddenError) as exc:
        _check("completed", "pending", role)

    assert exc.value.context["capability"] == "can_revert_from_completed"


def test_admin_reverts():
    assert _check("completed", "pending", "admin") is True


def test_unknown_role_checked_before_noop():
    with pytest.raises(UnknownRoleError):
        _check("pending", "pending", "billing")


def test_illegal_edge_reported_before_capability():
    with pytest.raises(IllegalTransitionError):
        _check("cancelled", "pending", "doctor")


def test_pharmacist_completes_prescription():
    assert _check("pending", "completed", "pharmacist", record_type=PRESCRIPTION_TYPE) is True

    with pytest.raises(ForbiddenError):
        _check("pending", "completed", "laboratory_technician", record_type=PRESCRIPTION_TYPE)


# =============================================================
# Introspection
# =============================================================

def test_allowed_transitions_per_role():
    assert allowed_transitions("lab_test", "pending", "laboratory_technician") == [
        "cancelled",
        "completed",
        "in_progress",
    ]
    assert allowed_transitions("lab_test", "pending", "doctor") == []
    assert allowed_transitions("lab_test", "completed", "laboratory_technician") == []
    assert allowed_transitions("lab_test", "completed", "admin") == ["pending"]
    assert allowed_transitions("prescription", "in_progress", "pharmacist") == ["cancelled", "completed"]


def test_required_roles():
    assert required_roles("lab_test", "pending", "completed") == ["admin", "laboratory_technician"]
    assert required_roles("prescription", "completed", "pending") == ["admin"]


def test_workflow_definition_shape():
    data = workflow_definition("prescription")

    assert data["kind"] == "prescription"
    assert data["assigned_role"] == "pharmacist"
    assert data["status_labels"]["completed"] == "Dispensed"
    assert data["transitions"]["cancelled"] == []
    assert data["reversal_edges"] == [["completed", "pending"]]
    assert data["requires_payload_to_complete"] is True

    both = workflow_definition()
    assert set(both) == {"lab_test", "prescription"}
