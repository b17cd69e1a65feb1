"""
User mirror for PostgreSQL
Firebase Auth owns identity; this row records who has signed in to the marketplace
"""
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func
from core.database import Base

class User(Base):
    __tablename__ = "users"

    # Primary key - Firebase Auth UID
    uid = Column(String(128), primary_key=True, index=True)

    email = Column(String(255), index=True, nullable=True)
    display_name = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        """Convert to dict for API responses"""
        return {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
        }
