from __future__ import annotations

from collections.abc import Collection

from fastapi import Depends

from . import schemas
from .auth import get_current_user
from .errors import Forbidden

# purpose: department and role guards composed in front of mutating routes
# status: active

ROLE_ADMIN = "Admin"
ROLE_HOD = "HOD"
ROLE_METHODS = "Methods"
ROLE_USER = "User"
ROLE_OPERATOR = "Operator"

# bypasses department scoping, never role scoping
SUPER_ROLE = ROLE_ADMIN

DEPT_METHODS = 1
DEPT_SAND = 2
DEPT_MELTING = 3
DEPT_MOULDING = 4
DEPT_QUALITY = 5
DEPT_POURING = 6
DEPT_FETTLING = 7
DEPT_MACHINE_SHOP = 8
DEPT_METALLURGY = 9

DEPARTMENTS: dict[int, str] = {
    DEPT_METHODS: "Methods",
    DEPT_SAND: "Sand Plant",
    DEPT_MELTING: "Melting",
    DEPT_MOULDING: "Moulding",
    DEPT_QUALITY: "Quality Assurance",
    DEPT_POURING: "Pouring",
    DEPT_FETTLING: "Fettling",
    DEPT_MACHINE_SHOP: "Machine Shop",
    DEPT_METALLURGY: "Metallurgy Lab",
}

STAGE_UPDATE_ROLES = (ROLE_ADMIN, ROLE_HOD)


def department_allowed(claims: schemas.TokenClaims, allowed: Collection[int]) -> bool:
    if claims.role == SUPER_ROLE:
        return True
    return claims.department_id is not None and claims.department_id in allowed


def role_allowed(claims: schemas.TokenClaims, allowed: Collection[str]) -> bool:
    return claims.role is not None and claims.role in allowed


def authorize_department(*department_ids: int):
    """Build a dependency admitting callers from the given departments (or Admin)."""

    allowed = frozenset(department_ids)

    def guard(user: schemas.TokenClaims = Depends(get_current_user)) -> schemas.TokenClaims:
        if not department_allowed(user, allowed):
            raise Forbidden("Access denied for your department")
        return user

    guard.allowed_departments = allowed
    guard.__name__ = f"authorize_department_{'_'.join(str(d) for d in sorted(allowed))}"
    return guard


def authorize_roles(*roles: str):
    """Build a dependency admitting callers holding one of the given roles."""

    allowed = frozenset(roles)

    def guard(user: schemas.TokenClaims = Depends(get_current_user)) -> schemas.TokenClaims:
        if not role_allowed(user, allowed):
            raise Forbidden("Access denied for your role")
        return user

    guard.allowed_roles = allowed
    guard.__name__ = f"authorize_roles_{'_'.join(sorted(allowed))}"
    return guard


def describe_policy(dependencies) -> dict[str, list]:
    """Summarize the guards attached to a route for review and tests."""

    policy: dict[str, list] = {"departments": [], "roles": []}
    for dep in dependencies:
        call = getattr(dep, "dependency", dep)
        if hasattr(call, "allowed_departments"):
            policy["departments"] = sorted(call.allowed_departments)
        if hasattr(call, "allowed_roles"):
            policy["roles"] = sorted(call.allowed_roles)
    return policy
