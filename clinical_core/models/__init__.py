from .core import (
    AuditLog,
    ClinicalRecord,
    LabTest,
    Patient,
    Prescription,
    StaffMember,
    TimeStampedModel,
    WorkflowTransition,
)

__all__ = [
    "AuditLog",
    "ClinicalRecord",
    "LabTest",
    "Patient",
    "Prescription",
    "StaffMember",
    "TimeStampedModel",
    "WorkflowTransition",
]
