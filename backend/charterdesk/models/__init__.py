"""Aggregate model imports for Alembic auto-detection."""

# Identity
from charterdesk.models.user import User  # noqa: F401
from charterdesk.models.organization import MemberRole, Membership, Organization  # noqa: F401
from charterdesk.models.invitation import Invitation  # noqa: F401
from charterdesk.models.password_reset import PasswordResetToken  # noqa: F401

# Reference data
from charterdesk.models.company import Company  # noqa: F401
from charterdesk.models.vessel import Vessel  # noqa: F401
from charterdesk.models.port import Port  # noqa: F401
from charterdesk.models.cargo_type import CargoType  # noqa: F401

# Trading entities
from charterdesk.models.order import Order  # noqa: F401
from charterdesk.models.negotiation import Negotiation  # noqa: F401
from charterdesk.models.fixture import Fixture  # noqa: F401
from charterdesk.models.contract import Contract  # noqa: F401
from charterdesk.models.recap_manager import RecapManager  # noqa: F401
from charterdesk.models.addenda import ContractAddendum, RecapAddendum  # noqa: F401
from charterdesk.models.approval import AddendaApproval, ContractApproval  # noqa: F401
from charterdesk.models.signature import AddendaSignature, ContractSignature  # noqa: F401

# Audit
from charterdesk.models.field_change import FieldChange  # noqa: F401
from charterdesk.models.activity_log import ActivityLog  # noqa: F401
