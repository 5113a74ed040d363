"""Aggregate model imports for Alembic auto-detection."""

from chemsphere.models.user import User, UserRole  # noqa: F401
from chemsphere.models.chemical import Chemical  # noqa: F401
from chemsphere.models.equipment import Equipment  # noqa: F401
from chemsphere.models.usage_log import ChemicalUsage, UsageLog, UsageLogEquipment  # noqa: F401
from chemsphere.models.audit_log import AuditLog  # noqa: F401
