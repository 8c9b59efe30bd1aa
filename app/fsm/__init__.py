"""Purchase status state machine."""

from app.fsm.states import PurchaseStatus, ALLOWED_TRANSITIONS, can_transition

__all__ = ["PurchaseStatus", "ALLOWED_TRANSITIONS", "can_transition"]
