"""
Vendor onboarding state machine.

    REGISTERED -> PLAN_SELECTED -> PROFILE_COMPLETED -> PENDING_APPROVAL
    PENDING_APPROVAL -> APPROVED | REJECTED
    REJECTED -> PENDING_APPROVAL   (re-submission)
    APPROVED -> SUSPENDED

transition() is the only place that writes Vendor.onboarding_status.
"""
import logging
from typing import Dict, FrozenSet, List, Optional

from app.core.errors import InvalidStateTransition
from app.db.models.vendor import OnboardingStatus, Vendor, VendorProfile

logger = logging.getLogger(__name__)

S = OnboardingStatus

TRANSITIONS: Dict[OnboardingStatus, FrozenSet[OnboardingStatus]] = {
    S.REGISTERED: frozenset({S.PLAN_SELECTED}),
    S.PLAN_SELECTED: frozenset({S.PROFILE_COMPLETED}),
    S.PROFILE_COMPLETED: frozenset({S.PENDING_APPROVAL}),
    S.PENDING_APPROVAL: frozenset({S.APPROVED, S.REJECTED}),
    S.REJECTED: frozenset({S.PENDING_APPROVAL}),
    S.APPROVED: frozenset({S.SUSPENDED}),
    S.SUSPENDED: frozenset(),
}

# Statuses in which the vendor may still edit the onboarding profile
PROFILE_EDITABLE: FrozenSet[OnboardingStatus] = frozenset({
    S.REGISTERED, S.PLAN_SELECTED, S.PROFILE_COMPLETED, S.REJECTED,
})

# Statuses in which the vendor may (re)select a plan
PLAN_SELECTABLE: FrozenSet[OnboardingStatus] = frozenset({
    S.REGISTERED, S.PLAN_SELECTED, S.PROFILE_COMPLETED, S.REJECTED,
})

REQUIRED_PROFILE_FIELDS: List[str] = [
    "description",
    "city",
    "state",
    "years_in_business",
    "team_size",
    "logo",
    "cover_image",
]


def current_status(vendor: Vendor) -> OnboardingStatus:
    return OnboardingStatus(vendor.onboarding_status)


def can_transition(current: OnboardingStatus, target: OnboardingStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def transition(vendor: Vendor, target: OnboardingStatus) -> OnboardingStatus:
    """
    Move a vendor along one edge of the graph.

    Raises:
        InvalidStateTransition: if the edge does not exist; the status is left unchanged.

    Returns:
        The previous status
    """
    current = current_status(vendor)
    if not can_transition(current, target):
        logger.warning(
            f"Rejected onboarding transition: vendor_id={vendor.id}, {current.value} -> {target.value}"
        )
        raise InvalidStateTransition(current.value, target.value)

    vendor.onboarding_status = target.value
    logger.info(f"Vendor onboarding transition: vendor_id={vendor.id}, {current.value} -> {target.value}")
    return current


def missing_profile_fields(profile: Optional[VendorProfile]) -> List[str]:
    """Mandatory profile fields that are still empty."""
    if profile is None:
        return list(REQUIRED_PROFILE_FIELDS)

    missing = []
    for field_name in REQUIRED_PROFILE_FIELDS:
        value = getattr(profile, field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field_name)
    return missing


def is_profile_complete(profile: Optional[VendorProfile]) -> bool:
    return not missing_profile_fields(profile)
