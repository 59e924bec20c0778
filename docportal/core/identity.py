"""
core/identity.py
----------------
Who is calling. The Access Gate produces exactly one of these per request
and everything downstream branches on its type.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Tenant:
    company_id: int
    registration_number: str


@dataclass(frozen=True)
class Admin:
    pass


Identity = Union[Anonymous, Tenant, Admin]


def to_claims(identity: Identity) -> Dict[str, Any]:
    """Session claims stored server-side for a logged-in identity."""
    if isinstance(identity, Admin):
        return {"isAdmin": True}
    if isinstance(identity, Tenant):
        return {
            "companyId": identity.company_id,
            "registrationNumber": identity.registration_number,
        }
    raise ValueError("Anonymous callers have no session claims")


def from_claims(claims: Dict[str, Any] | None) -> Identity:
    if not claims:
        return Anonymous()
    if claims.get("isAdmin") is True:
        return Admin()
    company_id = claims.get("companyId")
    registration_number = claims.get("registrationNumber")
    if isinstance(company_id, int) and isinstance(registration_number, str):
        return Tenant(company_id=company_id, registration_number=registration_number)
    return Anonymous()


def is_admin(identity: Identity) -> bool:
    return isinstance(identity, Admin)
