"""
Tests for the vendor onboarding state machine.
"""
import pytest

from app.core.errors import InvalidStateTransition
from app.db.models.vendor import OnboardingStatus, Vendor, VendorProfile
from app.services import vendor_workflow
from tests.conftest import COMPLETE_PROFILE

S = OnboardingStatus

VALID_EDGES = [
    (S.REGISTERED, S.PLAN_SELECTED),
    (S.PLAN_SELECTED, S.PROFILE_COMPLETED),
    (S.PROFILE_COMPLETED, S.PENDING_APPROVAL),
    (S.PENDING_APPROVAL, S.APPROVED),
    (S.PENDING_APPROVAL, S.REJECTED),
    (S.REJECTED, S.PENDING_APPROVAL),
    (S.APPROVED, S.SUSPENDED),
]


def _vendor(status):
    return Vendor(id=1, email="v@example.com", business_name="V", owner_name="O", onboarding_status=status.value)


@pytest.mark.parametrize("current,target", VALID_EDGES)
def test_valid_transition_updates_status(current, target):
    """Every edge in the graph is accepted."""
    vendor = _vendor(current)
    previous = vendor_workflow.transition(vendor, target)
    assert previous == current
    assert vendor.onboarding_status == target.value


@pytest.mark.parametrize("current", list(S))
def test_invalid_transitions_leave_status_unchanged(current):
    """Any edge outside the graph raises and keeps the old status."""
    allowed = {target for source, target in VALID_EDGES if source == current}
    for target in S:
        if target in allowed:
            continue
        vendor = _vendor(current)
        with pytest.raises(InvalidStateTransition) as exc_info:
            vendor_workflow.transition(vendor, target)
        assert vendor.onboarding_status == current.value
        assert exc_info.value.status_code == 409


def test_suspended_is_terminal():
    for target in S:
        assert not vendor_workflow.can_transition(S.SUSPENDED, target)


def test_missing_profile_fields():
    """Missing, empty and whitespace-only fields all count as missing."""
    assert vendor_workflow.missing_profile_fields(None) == vendor_workflow.REQUIRED_PROFILE_FIELDS

    profile = VendorProfile(**{**COMPLETE_PROFILE, "city": "   ", "logo": None})
    assert vendor_workflow.missing_profile_fields(profile) == ["city", "logo"]
    assert not vendor_workflow.is_profile_complete(profile)

    assert vendor_workflow.is_profile_complete(VendorProfile(**COMPLETE_PROFILE))
