"""
Parcel Status Enumerations.
"""

import enum


class DeliveryStatus(str, enum.Enum):
    """
    Parcel delivery status.
    
    Status flow:
        CREATED → RIDER_ASSIGNED
    Later delivery states (in transit, delivered) extend this enum.
    """
    CREATED = "created"
    RIDER_ASSIGNED = "rider_assigned"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class ParcelType(str, enum.Enum):
    DOCUMENT = "document"
    NON_DOCUMENT = "non-document"
