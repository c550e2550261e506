"""
Required-field checks for the create forms.

They run before any storage call; the first failing check wins.
"""

from postal.app.core.exceptions import ValidationError
from postal.app.schemas.shipment import ShipmentDraft


def validate_shipment_draft(draft: ShipmentDraft, require_sender: bool = True) -> dict:
    """
    Check a create-shipment form and return the fields to store.

    The status is always pending whatever the form held.

    Raises:
        ValidationError: naming the first missing or invalid field
    """
    if require_sender and not draft.sender_id:
        raise ValidationError("Please select a sender", field="sender_id")
    if not (draft.to_address or "").strip():
        raise ValidationError("Please enter a delivery address", field="to_address")
    if not draft.weight or draft.weight <= 0:
        raise ValidationError("Please enter a valid weight", field="weight")
    if not draft.method_id:
        raise ValidationError("Please select a shipping method", field="method_id")

    return {
        "sender_id": int(draft.sender_id) if draft.sender_id else None,
        "to_address": draft.to_address.strip(),
        "weight": float(draft.weight),
        "method_id": int(draft.method_id),
        "status": "pending",
    }


def validate_method_form(name, cost) -> dict:
    if not name or cost is None:
        raise ValidationError("Please fill in all required fields for the new shipping method.")
    return validate_method_edit({"name": name, "cost": cost})


def validate_method_edit(fields: dict) -> dict:
    """Check an inline edit of a method; only the fields present are checked."""
    checked = dict(fields)
    if "name" in checked:
        checked["name"] = (checked["name"] or "").strip()
        if not checked["name"]:
            raise ValidationError("Shipping method name cannot be empty", field="name")
    if "cost" in checked:
        if checked["cost"] is None or float(checked["cost"]) < 0:
            raise ValidationError("Shipping cost cannot be negative", field="cost")
        checked["cost"] = float(checked["cost"])
    return checked


def validate_password_change(new_password: str, confirm_password: str) -> str:
    if new_password != confirm_password:
        raise ValidationError("New passwords don't match", field="confirm_password")
    if len(new_password) < 6:
        raise ValidationError("Password should be at least 6 characters", field="new_password")
    if len(new_password.encode("utf-8")) > 72:
        raise ValidationError("Password should be at most 72 bytes", field="new_password")
    return new_password
