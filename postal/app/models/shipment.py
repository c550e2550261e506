"""
Shipment database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from postal.app.db.session import Base
from postal.app.models.shipment_enums import ShipmentStatus


class Shipment(Base):
    """
    A parcel sent by a user with a chosen shipping method.

    Shipments are never deleted, only moved to a terminal status. Sender
    and method references are set to NULL when the referenced row is
    deleted, so orphaned shipments keep existing and display as Unknown.
    """
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    status = Column(String(32), default=ShipmentStatus.PENDING.value, nullable=False, index=True)
    to_address = Column(String(500), nullable=False)
    weight = Column(Float, nullable=False)

    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    method_id = Column(Integer, ForeignKey("method.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    # Only loaded by the joined reads in ShipmentService
    sender = relationship("User", lazy="raise")
    method = relationship("ShippingMethod", lazy="raise")

    def __repr__(self):
        return f"<Shipment(id={self.id}, sender_id={self.sender_id}, status='{self.status}')>"
