"""
User model - the quiz taker; authentication is handled outside this service
"""
from sqlalchemy import Column, Integer, String, TIMESTAMP
from app.database import Base, utcnow


class User(Base):
    """
    Users table - referenced by quiz attempts
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(255), unique=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
