# leavedesk/identity.py
"""
Caller identity bridging.

The authentication layer in front of the API supplies the caller as
headers. A caller without a stored User is provisioned on first use, with
the role decided by an explicit RolePolicy table.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from .schemas import InsertUser, User, validate_insert_user

logger = logging.getLogger("leavedesk.identity")

USER_ID_HEADER = "user-id"
EMAIL_HEADER = "x-user-email"
CLAIMS_HEADER = "x-user-claims"


@dataclass(frozen=True)
class CallerIdentity:
    subject: str
    verified_email: Optional[str] = None
    claims: Dict[str, str] = field(default_factory=dict)


def parse_claims(raw: Optional[str]) -> Dict[str, str]:
    """Parse 'role=hr, department=Finance' into a dict; malformed items are skipped."""
    claims = {}
    for item in (raw or "").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            claims[key.strip().lower()] = value.strip()
    return claims


def identity_from_headers(
    user_id: Optional[str],
    email: Optional[str] = None,
    claims: Optional[str] = None,
) -> Optional[CallerIdentity]:
    subject = (user_id or "").strip()
    if not subject:
        return None
    return CallerIdentity(
        subject=subject,
        verified_email=(email or "").strip() or None,
        claims=parse_claims(claims),
    )


@dataclass(frozen=True)
class RolePolicy:
    # (claim, value) pairs granting the hr role
    hr_claims: Tuple[Tuple[str, str], ...] = (("role", "hr"), ("group", "hr"))
    hr_emails: FrozenSet[str] = frozenset()
    default_role: str = "employee"

    @classmethod
    def from_settings(cls, settings) -> "RolePolicy":
        return cls(hr_emails=frozenset(settings.HR_EMAILS))

    def role_for(self, identity: CallerIdentity) -> str:
        for claim, value in self.hr_claims:
            if identity.claims.get(claim, "").lower() == value:
                return "hr"
        if identity.verified_email and identity.verified_email.lower() in self.hr_emails:
            return "hr"
        return self.default_role

    def profile_for(self, identity: CallerIdentity) -> InsertUser:
        role = self.role_for(identity)
        claims = identity.claims
        local_part = re.sub(r"[^A-Za-z0-9._-]", "-", identity.subject)
        # dots may not lead, trail or repeat in an address local part
        local_part = re.sub(r"\.{2,}", ".", local_part).strip(".") or "caller"
        # header values are untrusted: ValidationError on a bad verified email
        return validate_insert_user({
            "email": identity.verified_email or f"user-{local_part}@company.com",
            "name": claims.get("name") or "User",
            "role": role,
            "department": claims.get("department") or ("Human Resources" if role == "hr" else "General"),
            "employeeId": claims.get("employee_id") if role == "employee" else None,
        })


def ensure_user(storage, identity: CallerIdentity, policy: RolePolicy) -> User:
    """Return the caller's User, creating it under the caller's subject id if missing."""
    user = storage.get_user(identity.subject)
    if user is None:
        user = storage.create_user(policy.profile_for(identity), user_id=identity.subject)
        logger.info("Created new user: %s (%s)", user.email, user.role)
    return user
