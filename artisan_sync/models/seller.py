"""
Seller profile, offered services and service locations
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from artisan_sync.models.base import Base


class Seller(Base):
    """One-to-one with UserAccount, created the first time the account sells"""
    __tablename__ = "sellers"

    id = Column(Integer, primary_key=True, index=True)
    user_account_id = Column(String(36), ForeignKey("user_accounts.id"), unique=True, nullable=False)
    fullname = Column(String, nullable=True)  # Display name override

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user_account = relationship("UserAccount", back_populates="seller")
    services = relationship("SellerService", back_populates="seller")


class SellerService(Base):
    """
    A concrete offering tagged with one leaf (service type) category.

    co_ordinates is a "lat,lon" snapshot taken when the service is created.
    """
    __tablename__ = "seller_services"
    __table_args__ = (
        UniqueConstraint("seller_id", "category_id", "name", name="uq_seller_services_seller_category_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    seller_id = Column(Integer, ForeignKey("sellers.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    co_ordinates = Column(String, nullable=True)

    seller = relationship("Seller", back_populates="services")
    category = relationship("Category")
    locations = relationship("SellerServiceLocation", back_populates="seller_service")


class SellerServiceLocation(Base):
    __tablename__ = "seller_service_locations"

    id = Column(Integer, primary_key=True, index=True)
    seller_service_id = Column(Integer, ForeignKey("seller_services.id"), nullable=False, index=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    seller_service = relationship("SellerService", back_populates="locations")
