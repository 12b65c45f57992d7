from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from money_tracker.core.database import Base


class Transaction(Base):
    """
    A signed money movement recorded by a user.

    Positive prices are income, negative ones expenses. Rows are only ever
    inserted or deleted, never edited.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    # Foreign key to user - every query filters on it
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    price = Column(Float, nullable=False, index=True)
    # Stored in UTC
    datetime = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", backref="transactions")
