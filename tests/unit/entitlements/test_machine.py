"""Tests for the entitlement state machine."""

from datetime import UTC, datetime, timedelta

import pytest

from academy.core.constants import FREE_STUDENT_LIMIT, UNLIMITED_STUDENT_LIMIT
from academy.core.errors import ConflictError
from academy.modules.accounts.models import Plan, PlanType, TenantAccount
from academy.modules.entitlements.machine import (
    EntitlementState,
    activation_fields,
    can_transition,
    derive_state,
    ensure_transition,
    free_defaults,
    pause_fields,
    remote_corrections,
)
from academy.modules.remote import RemoteStatus


NOW = datetime(2026, 1, 15, 10, 30, tzinfo=UTC)


def make_owner(**fields) -> TenantAccount:
    account = TenantAccount.new_owner("9000000001", "Wisdom Academy", FREE_STUDENT_LIMIT)
    for key, value in fields.items():
        setattr(account, key, value)
    return account


def subscribed(active: bool = True) -> TenantAccount:
    fields = activation_fields(NOW, student_quota=UNLIMITED_STUDENT_LIMIT)
    return make_owner(**{**fields, "subscription_active": active})


def lapsed() -> TenantAccount:
    return make_owner(
        **activation_fields(
            NOW - timedelta(days=62), 1, student_quota=UNLIMITED_STUDENT_LIMIT
        )
    )


class TestDeriveState:
    def test_free_without_request(self):
        assert derive_state(make_owner(), False) == EntitlementState.FREE

    def test_free_with_pending_request(self):
        assert derive_state(make_owner(), True) == EntitlementState.PENDING

    def test_subscribed_active(self):
        assert derive_state(subscribed(), False) == EntitlementState.ACTIVE

    def test_subscribed_paused(self):
        assert derive_state(subscribed(active=False), False) == EntitlementState.PAUSED

    def test_subscription_wins_over_pending_request(self):
        assert derive_state(subscribed(), True) == EntitlementState.ACTIVE

    def test_lapsed_term_is_expired(self):
        assert derive_state(lapsed(), False, NOW) == EntitlementState.EXPIRED

    def test_lapsed_term_with_renewal_request_is_pending(self):
        assert derive_state(lapsed(), True, NOW) == EntitlementState.PENDING

    def test_running_term_is_active(self):
        account = make_owner(
            **activation_fields(NOW, 1, student_quota=UNLIMITED_STUDENT_LIMIT)
        )
        assert derive_state(account, False, NOW + timedelta(days=1)) == EntitlementState.ACTIVE


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (EntitlementState.FREE, EntitlementState.PENDING),
            (EntitlementState.FREE, EntitlementState.ACTIVE),
            (EntitlementState.PENDING, EntitlementState.ACTIVE),
            (EntitlementState.PENDING, EntitlementState.FREE),
            (EntitlementState.ACTIVE, EntitlementState.PAUSED),
            (EntitlementState.PAUSED, EntitlementState.ACTIVE),
            (EntitlementState.ACTIVE, EntitlementState.CANCELLED),
            (EntitlementState.PAUSED, EntitlementState.CANCELLED),
            (EntitlementState.EXPIRED, EntitlementState.PENDING),
            (EntitlementState.EXPIRED, EntitlementState.ACTIVE),
            (EntitlementState.EXPIRED, EntitlementState.CANCELLED),
            (EntitlementState.CANCELLED, EntitlementState.FREE),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (EntitlementState.FREE, EntitlementState.PAUSED),
            (EntitlementState.FREE, EntitlementState.CANCELLED),
            (EntitlementState.ACTIVE, EntitlementState.PENDING),
            (EntitlementState.ACTIVE, EntitlementState.FREE),
            (EntitlementState.PAUSED, EntitlementState.FREE),
            (EntitlementState.CANCELLED, EntitlementState.ACTIVE),
            (EntitlementState.EXPIRED, EntitlementState.PAUSED),
            (EntitlementState.ACTIVE, EntitlementState.ACTIVE),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(ConflictError) as exc_info:
            ensure_transition(current, target)
        assert exc_info.value.error_code == "invalid_transition"


class TestFieldPatches:
    def test_lifetime_activation(self):
        fields = activation_fields(NOW, student_quota=UNLIMITED_STUDENT_LIMIT)

        assert fields["plan"] == Plan.SUBSCRIBED
        assert fields["subscription_active"] is True
        assert fields["plan_type"] == PlanType.LIFETIME
        assert fields["start_date"] == NOW
        assert fields["end_date"] is None
        assert fields["student_quota"] == UNLIMITED_STUDENT_LIMIT

    def test_fixed_term_activation_adds_calendar_months(self):
        fields = activation_fields(
            datetime(2026, 1, 31, tzinfo=UTC), months=1, student_quota=500
        )

        assert fields["plan_type"] == PlanType.FIXED_TERM
        assert fields["end_date"] == datetime(2026, 2, 28, tzinfo=UTC)
        assert fields["student_quota"] == 500

    def test_pause_only_flips_active(self):
        assert pause_fields(True) == {"subscription_active": False}
        assert pause_fields(False) == {"subscription_active": True}

    def test_free_defaults_reset_everything(self):
        fields = free_defaults(FREE_STUDENT_LIMIT)

        assert fields["plan"] == Plan.FREE
        assert fields["subscription_active"] is False
        assert fields["plan_type"] == PlanType.NONE
        assert fields["start_date"] is None
        assert fields["end_date"] is None
        assert fields["student_quota"] == FREE_STUDENT_LIMIT


def correct(account: TenantAccount, accepted: bool, paused: bool = False) -> dict:
    return remote_corrections(
        account,
        RemoteStatus(accepted=accepted, paused=paused),
        NOW,
        student_quota=UNLIMITED_STUDENT_LIMIT,
    )


class TestRemoteCorrections:
    def test_free_and_not_accepted_is_unchanged(self):
        assert correct(make_owner(), accepted=False) == {}

    def test_acceptance_activates_lifetime(self):
        changes = correct(make_owner(), accepted=True)

        assert changes == activation_fields(NOW, student_quota=UNLIMITED_STUDENT_LIMIT)

    def test_acceptance_while_paused_activates_paused(self):
        changes = correct(make_owner(), accepted=True, paused=True)

        assert changes["plan"] == Plan.SUBSCRIBED
        assert changes["subscription_active"] is False

    def test_pause_mirrors_onto_subscribed_account(self):
        assert correct(subscribed(), accepted=True, paused=True) == {
            "subscription_active": False
        }

    def test_resume_mirrors_onto_paused_account(self):
        assert correct(subscribed(active=False), accepted=True) == {
            "subscription_active": True
        }

    def test_not_accepted_never_downgrades(self):
        assert correct(subscribed(), accepted=False) == {}

    def test_standing_acceptance_never_renews_lapsed_term(self):
        assert correct(lapsed(), accepted=True) == {}

    def test_in_sync_is_unchanged(self):
        assert correct(subscribed(), accepted=True) == {}
