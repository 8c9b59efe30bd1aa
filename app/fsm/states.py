"""
Purchase status definitions.
A purchase only moves forward; nothing returns to GENERATED.
"""

from enum import Enum
from typing import Dict, FrozenSet


class PurchaseStatus(str, Enum):
    """Lifecycle of a single PIX payment attempt."""

    GENERATED = "Generated"     # QR code issued, waiting for payment
    SUCCEEDED = "Succeeded"     # Gateway reported the charge as paid
    FAILED = "Failed"
    EXPIRED = "Expired"

    @property
    def is_terminal(self) -> bool:
        return self is PurchaseStatus.SUCCEEDED


# Allowed manual corrections. The webhook path only ever does GENERATED -> SUCCEEDED.
ALLOWED_TRANSITIONS: Dict[PurchaseStatus, FrozenSet[PurchaseStatus]] = {
    PurchaseStatus.GENERATED: frozenset({
        PurchaseStatus.SUCCEEDED,
        PurchaseStatus.FAILED,
        PurchaseStatus.EXPIRED,
    }),
    PurchaseStatus.FAILED: frozenset({PurchaseStatus.SUCCEEDED}),
    PurchaseStatus.EXPIRED: frozenset({PurchaseStatus.SUCCEEDED}),
    PurchaseStatus.SUCCEEDED: frozenset(),
}


def can_transition(current: PurchaseStatus, requested: PurchaseStatus) -> bool:
    """Check whether a status change is a valid forward move."""
    return requested in ALLOWED_TRANSITIONS[current]
