"""
Rider Status Enumerations.
"""

import enum


class RiderStatus(str, enum.Enum):
    """
    Rider application status.
    
    Status flow:
        PENDING → ACTIVE | REJECTED
        ACTIVE → DEACTIVATED | REJECTED
        REJECTED and DEACTIVATED are terminal
    """
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    DEACTIVATED = "deactivated"


TERMINAL_RIDER_STATUSES = frozenset({RiderStatus.REJECTED, RiderStatus.DEACTIVATED})

# Outcomes accepted when an application is decided
DECISION_OUTCOMES = frozenset({RiderStatus.ACTIVE, RiderStatus.REJECTED})


class WorkStatus(str, enum.Enum):
    """Availability of an active rider for new assignments."""
    AVAILABLE = "available"
    IN_DELIVERY = "in_delivery"
