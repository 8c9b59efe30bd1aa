"""
Tests for purchase status transitions.
"""

import pytest
from app.fsm.states import ALLOWED_TRANSITIONS, PurchaseStatus, can_transition


class TestPurchaseStatus:
    """Tests for PurchaseStatus enum."""

    def test_all_states_defined(self):
        """Verify the stored status strings."""
        actual = {s.value for s in PurchaseStatus}
        assert actual == {"Generated", "Succeeded", "Failed", "Expired"}

    def test_state_is_string(self):
        """Verify states compare equal to their stored strings."""
        assert PurchaseStatus.GENERATED == "Generated"
        assert PurchaseStatus("Succeeded") is PurchaseStatus.SUCCEEDED

    def test_only_succeeded_is_terminal(self):
        assert PurchaseStatus.SUCCEEDED.is_terminal
        assert not PurchaseStatus.GENERATED.is_terminal
        assert not PurchaseStatus.FAILED.is_terminal
        assert not PurchaseStatus.EXPIRED.is_terminal


class TestTransitions:
    """Tests for allowed status changes."""

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(PurchaseStatus)

    @pytest.mark.parametrize("target", [
        PurchaseStatus.SUCCEEDED,
        PurchaseStatus.FAILED,
        PurchaseStatus.EXPIRED,
    ])
    def test_generated_moves_forward(self, target):
        assert can_transition(PurchaseStatus.GENERATED, target)

    @pytest.mark.parametrize("source", [PurchaseStatus.FAILED, PurchaseStatus.EXPIRED])
    def test_late_payment_can_be_recorded(self, source):
        """A paid charge found after expiry or failure can still be marked paid."""
        assert can_transition(source, PurchaseStatus.SUCCEEDED)

    def test_nothing_returns_to_generated(self):
        for source in PurchaseStatus:
            assert not can_transition(source, PurchaseStatus.GENERATED)

    def test_succeeded_is_final(self):
        for target in PurchaseStatus:
            assert not can_transition(PurchaseStatus.SUCCEEDED, target)

    def test_failed_and_expired_do_not_swap(self):
        assert not can_transition(PurchaseStatus.FAILED, PurchaseStatus.EXPIRED)
        assert not can_transition(PurchaseStatus.EXPIRED, PurchaseStatus.FAILED)
