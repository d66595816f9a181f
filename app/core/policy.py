"""
Declarative access policy.

Each route declares the capability it needs with ``Depends(require(...))``;
POLICY maps a capability to the check that grants it. A caller without a
valid identity gets 401, a known caller lacking the capability gets 403.
"""
import enum
import logging
from typing import Callable, Dict

from fastapi import Depends

from app.core.auth_dependency import Identity, get_identity
from app.core.errors import Forbidden
from app.core.security import USER_TOKEN, VENDOR_TOKEN
from app.db.models.vendor import OnboardingStatus

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    ADMIN = "ADMIN"
    VENDOR = "VENDOR"
    APPROVED_VENDOR = "APPROVED_VENDOR"
    MEMBER = "MEMBER"


def _is_admin(identity: Identity) -> bool:
    return identity.kind == USER_TOKEN and identity.user.is_admin


def _is_vendor(identity: Identity) -> bool:
    return identity.kind == VENDOR_TOKEN and bool(identity.vendor.is_verified)


def _is_approved_vendor(identity: Identity) -> bool:
    return _is_vendor(identity) and identity.vendor.onboarding_status == OnboardingStatus.APPROVED.value


def _is_member(identity: Identity) -> bool:
    return identity.kind == USER_TOKEN


POLICY: Dict[Capability, Callable[[Identity], bool]] = {
    Capability.ADMIN: _is_admin,
    Capability.VENDOR: _is_vendor,
    Capability.APPROVED_VENDOR: _is_approved_vendor,
    Capability.MEMBER: _is_member,
}

DENIED_MESSAGES = {
    Capability.ADMIN: "Admin access required",
    Capability.VENDOR: "Vendor access required",
    Capability.APPROVED_VENDOR: "Vendor account must be approved",
    Capability.MEMBER: "Member access required",
}


def authorize(identity: Identity, capability: Capability) -> None:
    if not POLICY[capability](identity):
        logger.info(f"Access denied: {identity.kind}:{identity.id} lacks {capability.value}")
        raise Forbidden(DENIED_MESSAGES[capability])


_dependencies: Dict[Capability, Callable] = {}


def require(capability: Capability) -> Callable:
    """FastAPI dependency returning the Identity if it holds `capability`."""
    if capability not in _dependencies:
        def dependency(identity: Identity = Depends(get_identity)) -> Identity:
            authorize(identity, capability)
            return identity
        dependency.__name__ = f"require_{capability.value.lower()}"
        _dependencies[capability] = dependency
    return _dependencies[capability]
