from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import IdMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin):
    __tablename__ = "users"

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default="user")  # user | admin
    is_active = Column(Boolean, default=True, nullable=False)
    refresh_token = Column(String, nullable=True)
    # sha256 of the emailed token; the raw token is never stored
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expire = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    facturas = relationship("Factura", back_populates="owner")
