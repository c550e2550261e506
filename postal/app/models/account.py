"""
Account model: the identity store behind sign-up, sign-in and sign-out.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from postal.app.db.session import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}')>"
