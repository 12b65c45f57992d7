from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from money_tracker.core.database import Base


class User(Base):
    """
    User model representing application users.

    Stores authentication credentials only; passwords are stored as bcrypt
    hashes and never leave the credential store.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Email is unique and indexed for fast lookups during login
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
