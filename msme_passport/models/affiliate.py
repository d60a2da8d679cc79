"""Chambers: one required primary affiliate per business, any number of secondary ones."""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from msme_passport.database import Base, new_id


class MainAffiliate(Base):
    __tablename__ = "main_affiliates"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SecondaryAffiliate(Base):
    __tablename__ = "secondary_affiliates"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BusinessSecondaryAffiliate(Base):
    __tablename__ = "business_secondary_affiliates"
    __table_args__ = (
        UniqueConstraint("business_id", "secondary_affiliate_id", name="uq_business_secondary_affiliate"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("business_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    secondary_affiliate_id = Column(String(36), ForeignKey("secondary_affiliates.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    secondary_affiliate = relationship("SecondaryAffiliate")
