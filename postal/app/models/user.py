"""
User profile model.

The profile row is what the dashboards work with; credentials live in
Account and are matched by email.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from postal.app.db.session import Base


class User(Base):
    """
    User profile.

    ``priv`` is the privilege flag: True for admins, False for regular
    users. It is always False at sign-up.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    address = Column(String(500), nullable=False, default="")
    priv = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', priv={self.priv})>"
