"""Declarative role policy.

Every role decision in the application is a membership test against one of
the sets below. Page routes are matched by path pattern; API routes name the
set they need through ``require_roles``.
"""

import re
from dataclasses import dataclass, field

from bnoverseas.models.user import UserRole

ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
SUPER_ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN})
ANY_ROLE = frozenset(UserRole)

# Which actors may grant a given role to another user.
ROLE_ASSIGNMENT = {
    UserRole.STUDENT: ADMIN_ROLES,
    UserRole.INSTRUCTOR: ADMIN_ROLES,
    UserRole.ADMIN: SUPER_ADMIN_ROLES,
    UserRole.SUPER_ADMIN: SUPER_ADMIN_ROLES,
}


def _compile(pattern: str) -> re.Pattern:
    regex = ""
    for segment in pattern.strip("/").split("/"):
        if segment == "**":
            regex += r"(?:/.*)?"
        elif segment == "*":
            regex += r"/[^/]+"
        else:
            regex += "/" + re.escape(segment)
    return re.compile(f"^{regex}/?$")


def as_role(value) -> UserRole | None:
    try:
        return UserRole(getattr(value, "value", value))
    except ValueError:
        return None


@dataclass(frozen=True)
class RoutePolicy:
    pattern: str
    allowed_roles: frozenset
    _regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_regex", _compile(self.pattern))

    def matches(self, path: str) -> bool:
        return bool(self._regex.match(path))

    def allows(self, role) -> bool:
        return as_role(role) in self.allowed_roles


PAGE_POLICIES = (
    RoutePolicy("/admin/**", ADMIN_ROLES),
    RoutePolicy("/profile/**", ANY_ROLE),
    RoutePolicy("/dashboard/**", ANY_ROLE),
    RoutePolicy("/test-prep/*/take", ANY_ROLE),
)


def policy_for(path: str, policies=PAGE_POLICIES) -> RoutePolicy | None:
    for policy in policies:
        if policy.matches(path):
            return policy
    return None


def can_assign_role(actor_role, target_role) -> bool:
    allowed = ROLE_ASSIGNMENT.get(as_role(target_role))
    return allowed is not None and as_role(actor_role) in allowed
