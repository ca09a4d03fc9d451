"""
User account and call event models

Partner-synced accounts are identified by (source, source_id); accounts
created by direct signup leave both columns null.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from artisan_sync.models.base import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())


class UserAccount(Base):
    """
    Local identity for buyers and sellers.

    Name, mobile and last_location are refreshed on every re-sync of the same
    source_id; roles are only written when the account is created.
    """
    __tablename__ = "user_accounts"
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_user_accounts_source_source_id"),
    )

    id = Column(String(36), primary_key=True, default=_new_uuid)
    fullname = Column(String, nullable=True)
    mobile = Column(String, nullable=True, index=True)
    last_location = Column(String, nullable=True)  # "lat,lon"
    roles = Column(JSON, nullable=True)  # {"seller": [...], "buyer": [...]}
    refresh_token = Column(String, nullable=True)

    # External origin (e.g. VISHWAKARMA + partner artisan id)
    source = Column(String, nullable=True, index=True)
    source_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    seller = relationship("Seller", back_populates="user_account", uselist=False)

    def __repr__(self):
        return f"<UserAccount {self.source}:{self.source_id} {self.fullname}>"


class UserAccountCall(Base):
    """A buyer calling a seller about one of their services"""
    __tablename__ = "user_account_calls"

    id = Column(Integer, primary_key=True, index=True)
    user_account_id = Column(String(36), ForeignKey("user_accounts.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("sellers.id"), nullable=False, index=True)
    seller_service_id = Column(Integer, ForeignKey("seller_services.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
