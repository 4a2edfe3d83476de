"""SQLAlchemy ORM models for engine-owned state"""

from sqlalchemy import Column, DateTime, Float, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LoanOverride(Base):
    """Manually corrected amount for one loan transaction"""

    __tablename__ = "loan_override"

    transaction_id = Column(Text, primary_key=True)
    amount = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
