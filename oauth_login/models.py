from sqlalchemy import Column, Integer, String
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import TIMESTAMP

from .database import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, nullable=False)
    name = Column(String(255), nullable=True)
    # NULL rather than "" when the provider has no email, so the unique
    # index only constrains real addresses.
    email = Column(String(255), nullable=True, unique=True)
    external_id = Column(String(255), nullable=False, unique=True, index=True)
    avatar_url = Column(String(1024), nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
