from snipvault.models.audit_entry import AppendOnlyViolation, AuditEntry
from snipvault.models.refresh_token import RefreshToken
from snipvault.models.snippet import Snippet
from snipvault.models.user import User

__all__ = [
    "AppendOnlyViolation",
    "AuditEntry",
    "RefreshToken",
    "Snippet",
    "User",
]
