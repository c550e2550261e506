"""
Shipment status vocabulary.
"""

import enum


class ShipmentStatus(str, enum.Enum):
    """
    Shipment status enumeration.

    There is no transition graph: any status may be set from any other.
    """
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED_DELIVERY = "failed_delivery"
    RETURNED = "returned"
    CANCELLED = "cancelled"


STATUS_LABELS = {
    ShipmentStatus.PENDING: "Pending",
    ShipmentStatus.PICKED_UP: "Picked Up",
    ShipmentStatus.IN_TRANSIT: "In Transit",
    ShipmentStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    ShipmentStatus.DELIVERED: "Delivered",
    ShipmentStatus.FAILED_DELIVERY: "Failed Delivery",
    ShipmentStatus.RETURNED: "Returned",
    ShipmentStatus.CANCELLED: "Cancelled",
}

UNKNOWN_LABEL = "Unknown"


def is_known_status(value) -> bool:
    return value in ShipmentStatus._value2member_map_


def status_label(value) -> str:
    """Display label for a stored status; unrecognized values render as Unknown."""
    if not is_known_status(value):
        return UNKNOWN_LABEL
    return STATUS_LABELS[ShipmentStatus(value)]
