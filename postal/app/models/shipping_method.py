"""
Shipping method model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime
from postal.app.db.session import Base


class ShippingMethod(Base):
    """A priced shipping option. Managed by admins only."""
    __tablename__ = "method"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    cost = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ShippingMethod(id={self.id}, name='{self.name}', cost={self.cost})>"
