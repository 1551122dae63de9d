"""
Modelos SQLAlchemy: exportar todos para que Alembic los detecte.
"""

from emr_ledger.models.role_assignment import Role, RoleAssignment
from emr_ledger.models.facility import Facility
from emr_ledger.models.practitioner import Practitioner
from emr_ledger.models.individual import Individual
from emr_ledger.models.medical_record import MedicalRecord
from emr_ledger.models.consent_grant import ConsentGrant
from emr_ledger.models.review_application import (
    ReviewApplication,
    ReviewStatus,
    ReviewTotals,
)
from emr_ledger.models.audit_log import AuditLog
from emr_ledger.models.system_state import SystemState

__all__ = [
    "Role",
    "RoleAssignment",
    "Facility",
    "Practitioner",
    "Individual",
    "MedicalRecord",
    "ConsentGrant",
    "ReviewApplication",
    "ReviewStatus",
    "ReviewTotals",
    "AuditLog",
    "SystemState",
]
