# models/user.py
from sqlalchemy import Column, String, Boolean, Enum, TEXT, JSON, CHAR
from app.core.database import Base, PreciseDateTime
from app.utils.clock import utcnow
import enum

class UserRoleEnum(str, enum.Enum):
    client = "client"
    freelancer = "freelancer"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    # Identity
    user_id = Column(CHAR(36), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), unique=True, index=True, nullable=True)
    username = Column(String(100), unique=True, index=True, nullable=True)
    password_hash = Column(String(255), nullable=False)
    # role never changes after registration
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    avatar = Column(String(500))
    otp_enabled = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    # Seller profile (freelancers only)
    title = Column(String(255))
    skills = Column(JSON)
    bio = Column(TEXT)
    portfolio = Column(JSON)  # {"images": [...], "links": [...]}
    languages = Column(JSON)
    experience_level = Column(String(50))

    created_at = Column(PreciseDateTime, default=utcnow)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow)
