from evops.db.models.api_key import ApiKey
from evops.db.models.audit_log import AuditLog
from evops.db.models.budget_item import BudgetItem
from evops.db.models.event import Event
from evops.db.models.security import FailedLoginAttempt, RateLimitRecord
from evops.db.models.sponsor import EventSponsor, Sponsor
from evops.db.models.ticket_type import TicketType
from evops.db.models.user import User
from evops.db.models.vendor import EventVendor, Vendor

__all__ = [
    "ApiKey",
    "AuditLog",
    "BudgetItem",
    "Event",
    "EventSponsor",
    "EventVendor",
    "FailedLoginAttempt",
    "RateLimitRecord",
    "Sponsor",
    "TicketType",
    "User",
    "Vendor",
]
