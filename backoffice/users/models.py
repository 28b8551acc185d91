import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from backoffice.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    roles = Column(String(200), default="user")

    created_at = Column(DateTime, default=datetime.utcnow)
