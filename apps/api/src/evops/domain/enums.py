from enum import StrEnum


class Role(StrEnum):
    superadmin = "superadmin"
    admin = "admin"
    organizer = "organizer"
    vendor = "vendor"
    sponsor = "sponsor"
    volunteer = "volunteer"


class UserStatus(StrEnum):
    active = "active"
    suspended = "suspended"
    pending = "pending"


class EventStatus(StrEnum):
    draft = "draft"
    planning = "planning"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class BudgetCategory(StrEnum):
    venue = "venue"
    catering = "catering"
    av = "av"
    marketing = "marketing"
    staffing = "staffing"
    permits = "permits"
    transportation = "transportation"
    decoration = "decoration"
    entertainment = "entertainment"
    misc = "misc"


BUDGET_CATEGORY_LABELS: dict[BudgetCategory, str] = {
    BudgetCategory.venue: "Venue & Facilities",
    BudgetCategory.catering: "Catering & F&B",
    BudgetCategory.av: "AV & Technology",
    BudgetCategory.marketing: "Marketing & Promo",
    BudgetCategory.staffing: "Staffing & Labor",
    BudgetCategory.permits: "Permits & Insurance",
    BudgetCategory.transportation: "Transportation",
    BudgetCategory.decoration: "Decoration & Design",
    BudgetCategory.entertainment: "Entertainment",
    BudgetCategory.misc: "Miscellaneous",
}


class BudgetItemStatus(StrEnum):
    planned = "planned"
    committed = "committed"
    paid = "paid"
    cancelled = "cancelled"


class ReviewStatus(StrEnum):
    """Admin review state of a vendor or sponsor listing."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class VendorLinkStatus(StrEnum):
    inquiry = "inquiry"
    negotiating = "negotiating"
    confirmed = "confirmed"
    declined = "declined"
    completed = "completed"


class SponsorLinkStatus(StrEnum):
    inquiry = "inquiry"
    negotiating = "negotiating"
    confirmed = "confirmed"
    declined = "declined"


class AuditAction(StrEnum):
    # auth
    login = "login"
    login_failed = "login_failed"
    logout = "logout"
    signup = "signup"
    password_reset_requested = "password_reset_requested"
    password_reset_completed = "password_reset_completed"
    email_verified = "email_verified"
    # user management
    user_created = "user_created"
    user_updated = "user_updated"
    user_deleted = "user_deleted"
    user_suspended = "user_suspended"
    user_unsuspended = "user_unsuspended"
    role_changed = "role_changed"
    # events
    event_created = "event_created"
    event_updated = "event_updated"
    event_deleted = "event_deleted"
    event_published = "event_published"
    # vendors / sponsors
    vendor_approved = "vendor_approved"
    vendor_rejected = "vendor_rejected"
    sponsor_approved = "sponsor_approved"
    sponsor_rejected = "sponsor_rejected"
    # api
    api_key_created = "api_key_created"
    api_key_revoked = "api_key_revoked"
    api_request = "api_request"
    # admin
    admin_action = "admin_action"
    settings_changed = "settings_changed"
    # security
    rate_limited = "rate_limited"
    account_locked = "account_locked"
    suspicious_activity = "suspicious_activity"


class AuditResource(StrEnum):
    user = "user"
    event = "event"
    vendor = "vendor"
    sponsor = "sponsor"
    api_key = "api_key"
    webhook = "webhook"
    settings = "settings"
    auth = "auth"


class ApiKeyStatus(StrEnum):
    active = "active"
    revoked = "revoked"


class ApiKeyEnvironment(StrEnum):
    live = "live"
    test = "test"


class AuditStatus(StrEnum):
    success = "success"
    failure = "failure"
    blocked = "blocked"


class RateLimitType(StrEnum):
    auth = "auth"
    api = "api"
    admin = "admin"
    api_key = "api_key"
    default = "default"
